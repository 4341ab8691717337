"""
Photo Galaxy - Gesture-Controlled 3D Photo Gallery

Entry point for the application.
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Photo Galaxy - control a 3D photo galaxy with your hand",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Gestures: open hand = scatter, fist = gather, pinch = inspect",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: config.yaml)",
    )

    parser.add_argument(
        "--photos",
        type=Path,
        default=None,
        help="Directory with the initial photos (overrides config)",
    )

    parser.add_argument(
        "--camera",
        type=int,
        default=None,
        help="Camera device index (overrides config)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show camera feed with landmarks and gesture readout instead of the galaxy",
    )

    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show a small landmark preview and gesture readout in the galaxy window",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity (default: INFO)",
    )

    return parser.parse_args()


def run_webcam_debug(config):
    """
    Run webcam in debug mode - shows camera feed with landmarks.
    Useful for calibrating gesture thresholds for a camera and room.
    """
    import cv2
    from webcam import CameraLandmarkSource, GestureRecognizer
    from webcam.hand_tracker import draw_landmarks
    from galaxy import FormationController

    errors = []
    source = CameraLandmarkSource(config, on_error=errors.append)
    recognizer = GestureRecognizer(config.gestures)
    controller = FormationController(config.formation)

    print("Starting webcam debug mode...")
    print("Press 'q' to quit")
    print("-" * 40)

    if not source.start():
        print(f"ERROR: {errors[0] if errors else 'Could not open camera'}")
        return 1

    try:
        while True:
            landmarks = source.next_landmarks()
            state = recognizer.update(landmarks)
            controller.apply_gesture(state.gesture)

            if source.frame is not None:
                frame = draw_landmarks(source.frame, landmarks)
                cv2.putText(
                    frame, f"Gesture: {state.gesture.name} (raw {state.raw_gesture.name})", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.9, (0, 255, 0), 2
                )
                info_lines = [
                    f"Formation: {controller.formation.name}",
                    f"Pinch ratio: {state.pinch_ratio:.2f}",
                    f"Extended: {state.extended_fingers}  Curled: {state.curled_fingers}",
                    f"Confidence: {state.confidence:.2f}",
                ]
                for i, line in enumerate(info_lines):
                    cv2.putText(
                        frame, line, (10, 60 + i * 25),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1
                    )

                if state.changed:
                    print(f"[{source.frame_count:5d}] {state.gesture.name} -> {controller.formation.name}")

                cv2.imshow("Photo Galaxy Debug", frame)

            if cv2.waitKey(1) & 0xFF == ord('q'):
                break

    finally:
        source.stop()
        cv2.destroyAllWindows()

    return 0


def run_galaxy(config):
    """Run the galaxy window with the tracking worker on a background thread."""
    import signal
    import atexit
    from PyQt5.QtWidgets import QApplication
    from PyQt5.QtCore import QThread, Qt
    from webcam.worker import WebcamWorker
    from galaxy import FormationController, PhotoPool, discover_photos
    from ui import GalaxyWindow

    app = QApplication(sys.argv)

    pool = PhotoPool()
    controller = FormationController(config.formation)
    window = GalaxyWindow(config, pool, controller)
    window.show()

    static_photos = discover_photos(config.photos.directory, config.photos.extensions)
    print(f"  Photos: {len(static_photos)} from {config.photos.directory}")
    window.add_photos(static_photos)

    # Setup background worker and thread
    thread = QThread()
    worker = WebcamWorker(config)
    worker.moveToThread(thread)

    def cleanup():
        """Ensure camera is released on exit."""
        logging.getLogger(__name__).info("Cleaning up camera resources...")
        worker.stop_process()
        thread.quit()
        thread.wait(2000)
        window.shutdown()

    atexit.register(cleanup)

    def signal_handler(signum, frame):
        """Handle Ctrl+C and kill signals gracefully."""
        print(f"\nReceived signal {signum}, shutting down...")
        app.quit()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Queued connections keep every UI mutation on the GUI thread
    thread.started.connect(worker.start_process)
    worker.gesture_detected.connect(window.on_gesture, Qt.QueuedConnection)
    worker.hand_lost.connect(window.on_hand_lost, Qt.QueuedConnection)
    worker.camera_ready.connect(window.on_camera_ready, Qt.QueuedConnection)
    worker.frame_ready.connect(window.set_webcam_frame, Qt.QueuedConnection)
    worker.error.connect(window.on_error, Qt.QueuedConnection)

    window.start()
    thread.start()

    try:
        result = app.exec_()
    finally:
        cleanup()
        atexit.unregister(cleanup)  # Avoid double cleanup

    return result


def main():
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    # Load config
    from webcam import load_config
    config = load_config(args.config)

    # Apply CLI overrides
    if args.photos:
        config.photos.directory = str(args.photos)
    if args.camera is not None:
        config.camera.device_id = args.camera
    if args.preview:
        config.ui.debug_overlay = True

    print("Photo Galaxy starting...")
    print(f"  Camera: {config.camera.device_id}")
    print(f"  Debug: {args.debug}")

    if args.debug:
        return run_webcam_debug(config)
    return run_galaxy(config)


if __name__ == "__main__":
    sys.exit(main())
