import unittest

import numpy as np

from uav_deconfliction.utils.input_loader import Trajectory, Waypoint
from uav_deconfliction.utils.interpolation import interpolate_position, interpolate_positions


def l_shaped():
    return Trajectory((
        Waypoint(0.0, 0.0, 10.0, 0.0),
        Waypoint(100.0, 0.0, 10.0, 60.0),
        Waypoint(100.0, 100.0, 20.0, 120.0),
    ), "L", 10.0, 5.0)


class TestInterpolatePosition(unittest.TestCase):

    def test_midpoints_of_segments(self):
        traj = l_shaped()
        self.assertEqual(interpolate_position(traj, 30.0), (50.0, 0.0, 10.0))
        self.assertEqual(interpolate_position(traj, 90.0), (100.0, 50.0, 15.0))

    def test_exact_at_every_waypoint(self):
        traj = l_shaped()
        for wp in traj.waypoints:
            self.assertEqual(interpolate_position(traj, wp.t), wp.position)

    def test_clamps_outside_time_span(self):
        traj = l_shaped()
        self.assertEqual(interpolate_position(traj, -5.0), (0.0, 0.0, 10.0))
        self.assertEqual(interpolate_position(traj, 500.0), (100.0, 100.0, 20.0))

    def test_single_waypoint(self):
        traj = Trajectory((Waypoint(1.0, 2.0, 3.0, 10.0),), "hover")
        self.assertEqual(interpolate_position(traj, 0.0), (1.0, 2.0, 3.0))
        self.assertEqual(interpolate_position(traj, 10.0), (1.0, 2.0, 3.0))
        self.assertEqual(interpolate_position(traj, 99.0), (1.0, 2.0, 3.0))

    def test_zero_duration_segment(self):
        traj = Trajectory((
            Waypoint(0.0, 0.0, 0.0, 0.0),
            Waypoint(10.0, 0.0, 0.0, 5.0),
            Waypoint(20.0, 0.0, 0.0, 5.0),
            Waypoint(30.0, 0.0, 0.0, 10.0),
        ), "jump")
        self.assertEqual(interpolate_position(traj, 5.0), (10.0, 0.0, 0.0))
        self.assertEqual(interpolate_position(traj, 7.5), (25.0, 0.0, 0.0))

    def test_zero_duration_first_segment(self):
        traj = Trajectory((
            Waypoint(0.0, 0.0, 0.0, 0.0),
            Waypoint(10.0, 0.0, 0.0, 0.0),
            Waypoint(20.0, 0.0, 0.0, 10.0),
        ), "jump")
        self.assertEqual(interpolate_position(traj, 0.0), (0.0, 0.0, 0.0))
        self.assertEqual(interpolate_position(traj, 5.0), (15.0, 0.0, 0.0))


class TestInterpolatePositions(unittest.TestCase):

    def test_matches_scalar_interpolation(self):
        traj = l_shaped()
        times = np.linspace(-10.0, 130.0, 57)
        positions = interpolate_positions(traj, times)

        self.assertEqual(positions.shape, (57, 3))
        for t, row in zip(times, positions):
            np.testing.assert_allclose(row, interpolate_position(traj, float(t)), rtol=0, atol=1e-12)

    def test_matches_scalar_with_repeated_timestamps(self):
        traj = Trajectory((
            Waypoint(0.0, 0.0, 0.0, 0.0),
            Waypoint(10.0, 0.0, 0.0, 0.0),
            Waypoint(10.0, 10.0, 0.0, 5.0),
            Waypoint(20.0, 10.0, 0.0, 5.0),
            Waypoint(20.0, 20.0, 5.0, 10.0),
        ), "steps")
        times = np.array([-1.0, 0.0, 2.5, 5.0, 7.5, 10.0, 11.0])
        positions = interpolate_positions(traj, times)
        for t, row in zip(times, positions):
            np.testing.assert_allclose(row, interpolate_position(traj, float(t)), rtol=0, atol=1e-12)

    def test_single_waypoint(self):
        traj = Trajectory((Waypoint(1.0, 2.0, 3.0, 10.0),), "hover")
        positions = interpolate_positions(traj, np.array([0.0, 10.0, 20.0]))
        np.testing.assert_array_equal(positions, [[1.0, 2.0, 3.0]] * 3)


if __name__ == '__main__':
    unittest.main()
