import math

import numpy as np

from ui.projection import Camera, light_factor, project


def test_origin_projects_to_center():
    camera = Camera()
    screen, depth, visible = project(np.zeros((1, 3)), camera, 800, 600)
    np.testing.assert_allclose(screen[0], (400, 300))
    assert depth[0] == camera.distance
    assert visible[0]


def test_nearer_points_spread_further():
    camera = Camera()
    points = np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 10.0]])
    screen, _, _ = project(points, camera, 800, 600)
    assert screen[1, 0] > screen[0, 0] > 400


def test_up_is_up_on_screen():
    screen, _, _ = project(np.array([[0.0, 1.0, 0.0]]), Camera(), 800, 600)
    assert screen[0, 1] < 300


def test_points_behind_camera_are_hidden():
    camera = Camera(distance=30.0)
    _, _, visible = project(np.array([[0.0, 0.0, 40.0]]), camera, 800, 600)
    assert not visible[0]


def test_empty_input():
    screen, depth, visible = project(np.zeros((0, 3)), Camera(), 800, 600)
    assert screen.shape == (0, 2)
    assert len(depth) == len(visible) == 0


def test_orbit_spins_freely():
    camera = Camera()
    camera.orbit(1.0, speed=0.5, hold_front=False)
    assert math.isclose(camera.yaw, 0.5)


def test_orbit_returns_to_front_when_holding():
    camera = Camera(yaw=2 * math.pi + 0.4)
    for _ in range(300):
        camera.orbit(1 / 60, speed=0.5, hold_front=True)
    assert math.isclose(camera.yaw, 2 * math.pi, abs_tol=1e-3)


def test_light_factor_range():
    camera = Camera()
    depth = np.array([10.0, camera.distance, camera.distance + 100.0])
    light = light_factor(depth, camera, ambient=0.3)
    np.testing.assert_allclose(light, [1.0, 1.0, 0.3])
