import unittest

from tests.helpers import FIXTURE
from uav_deconfliction.models.cost_model import calculate_path_length, trajectory_cost
from uav_deconfliction.utils.input_loader import Trajectory, Waypoint, load_mission


class TestCostModel(unittest.TestCase):

    def test_single_segment(self):
        traj = Trajectory((Waypoint(0.0, 0.0, 0.0, 0.0), Waypoint(3.0, 4.0, 0.0, 10.0)), "d1")
        self.assertAlmostEqual(calculate_path_length(traj), 5.0)
        self.assertAlmostEqual(trajectory_cost(traj), 6.0)

    def test_multi_segment_fixture(self):
        primary = load_mission(FIXTURE).primary
        self.assertAlmostEqual(calculate_path_length(primary), 200.0)
        self.assertAlmostEqual(trajectory_cost(primary), 212.0)
        self.assertAlmostEqual(trajectory_cost(primary, time_weight=0.0), 200.0)

    def test_fewer_than_two_waypoints_costs_nothing(self):
        traj = Trajectory((Waypoint(5.0, 5.0, 5.0, 100.0),), "hover")
        self.assertEqual(calculate_path_length(traj), 0.0)
        self.assertEqual(trajectory_cost(traj), 0.0)

    def test_hovering_costs_time_only(self):
        traj = Trajectory((Waypoint(1.0, 1.0, 1.0, 0.0), Waypoint(1.0, 1.0, 1.0, 30.0)), "hover")
        self.assertAlmostEqual(trajectory_cost(traj), 3.0)


if __name__ == '__main__':
    unittest.main()
