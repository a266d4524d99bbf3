"""
Unit tests for the binary samplers (samplers.py).

Run with: pytest tests/test_samplers.py -v
"""

import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from route_navigator.config import Settings
from route_navigator.exceptions import InvalidInputException
from route_navigator.generator import generate_random_problem
from route_navigator.models import Node, Route, Vehicle, VRPProblem
from route_navigator.qubo import decode_solution, encode_routes, qubo_energy, vrp_to_qubo
from route_navigator.samplers import (
    AnnealingSampler,
    JitteredNearestNeighborSampler,
    create_sampler,
)


@pytest.fixture
def worked_problem():
    """Four nodes, one vehicle."""
    return VRPProblem(
        nodes=[Node(id=i) for i in range(4)],
        vehicles=[Vehicle(id=0)],
        distance_matrix=[[0, 1, 2, 3], [1, 0, 4, 5], [2, 4, 0, 6], [3, 5, 6, 0]]
    )


@pytest.fixture
def random_problem():
    """Seeded 7-node, 3-vehicle problem."""
    return generate_random_problem(num_nodes=7, num_vehicles=3, rng=np.random.default_rng(3))


class TestJitteredNearestNeighborSampler:
    """Tests for JitteredNearestNeighborSampler."""

    def test_vector_shape_and_values(self, random_problem):
        """Binary vector of length n*n*v."""
        sampler = JitteredNearestNeighborSampler(seed=1)
        x = sampler.sample(vrp_to_qubo(random_problem), random_problem)

        assert x.shape == (7 * 7 * 3,)
        assert set(np.unique(x)) <= {0, 1}

    def test_seeded_runs_match(self, random_problem):
        """Same seed, same vector."""
        qubo = vrp_to_qubo(random_problem)
        x1 = JitteredNearestNeighborSampler(seed=11).sample(qubo, random_problem)
        x2 = JitteredNearestNeighborSampler(seed=11).sample(qubo, random_problem)
        np.testing.assert_array_equal(x1, x2)

    def test_zero_jitter_is_nearest_neighbour(self, worked_problem):
        """Without noise the construction is plain nearest neighbour."""
        sampler = JitteredNearestNeighborSampler(jitter=0.0, seed=0)
        x = sampler.sample(vrp_to_qubo(worked_problem), worked_problem)

        expected = encode_routes(
            [Route(vehicle_id=0, path=[0, 1, 2, 3, 0], distance=14)],
            worked_problem
        )
        np.testing.assert_array_equal(x, expected)

    def test_ties_go_to_lowest_id(self):
        """Equal distances are visited in ascending id order."""
        problem = VRPProblem(
            nodes=[Node(id=i) for i in range(4)],
            vehicles=[Vehicle(id=0)],
            distance_matrix=[[0 if i == j else 1 for j in range(4)] for i in range(4)]
        )
        sampler = JitteredNearestNeighborSampler(jitter=0.0)
        routes = decode_solution(sampler.sample(vrp_to_qubo(problem), problem), problem)

        assert routes[0].path == [0, 1, 2, 3, 0]

    def test_every_customer_assigned_once(self, random_problem):
        """The decoded vector covers all customers exactly once."""
        sampler = JitteredNearestNeighborSampler(seed=5)
        routes = decode_solution(sampler.sample(vrp_to_qubo(random_problem), random_problem), random_problem)

        visited = [node for route in routes for node in route.path if node != 0]
        assert sorted(visited) == list(range(1, 7))

    def test_first_vehicle_takes_all(self, random_problem):
        """The first vehicle keeps going until no customer is left."""
        sampler = JitteredNearestNeighborSampler(seed=9)
        routes = decode_solution(sampler.sample(vrp_to_qubo(random_problem), random_problem), random_problem)

        assert [route.vehicle_id for route in routes] == [0]

    def test_depot_only(self):
        """No customers leaves the vector empty of bits."""
        problem = VRPProblem(nodes=[Node(id=0)], vehicles=[Vehicle(id=0), Vehicle(id=1)], distance_matrix=[[0]])
        x = JitteredNearestNeighborSampler(seed=0).sample(vrp_to_qubo(problem), problem)
        assert x.shape == (2,)
        assert not x.any()

    def test_negative_jitter_rejected(self):
        """Jitter must be non-negative."""
        with pytest.raises(InvalidInputException):
            JitteredNearestNeighborSampler(jitter=-0.1)


class TestAnnealingSampler:
    """Tests for AnnealingSampler."""

    def test_never_worse_than_warm_start(self, random_problem):
        """The best vector has energy at most that of the starting point."""
        qubo = vrp_to_qubo(random_problem)
        for seed in (0, 1, 2):
            warm = JitteredNearestNeighborSampler(seed=seed).sample(qubo, random_problem)
            annealed = AnnealingSampler(max_iter=2000, seed=seed).sample(qubo, random_problem)
            assert qubo_energy(qubo, annealed) <= qubo_energy(qubo, warm) + 1e-6

    def test_coverage_never_below_warm_start(self, random_problem):
        """Lower energy is only kept when the routes still reach every customer the start did."""
        qubo = vrp_to_qubo(random_problem)
        for seed in range(5):
            warm = JitteredNearestNeighborSampler(seed=seed).sample(qubo, random_problem)
            annealed = AnnealingSampler(max_iter=3000, seed=seed).sample(qubo, random_problem)

            def covered(x):
                return sorted(node for route in decode_solution(x, random_problem) for node in route.path[1:-1])

            assert covered(warm) == list(range(1, 7))
            assert covered(annealed) == covered(warm)

    def test_long_schedule_keeps_routes(self, worked_problem):
        """A long schedule still returns a vector that routes every customer."""
        qubo = vrp_to_qubo(worked_problem)
        sampler = AnnealingSampler(max_iter=20000, temp_init=50.0, cooling_rate=0.999, seed=11)
        routes = decode_solution(sampler.sample(qubo, worked_problem), worked_problem)

        assert sorted(n for route in routes for n in route.path[1:-1]) == [1, 2, 3]

    def test_vector_is_binary(self, worked_problem):
        """Flips keep the vector binary."""
        qubo = vrp_to_qubo(worked_problem)
        x = AnnealingSampler(max_iter=500, seed=4).sample(qubo, worked_problem)
        assert x.shape == (16,)
        assert set(np.unique(x)) <= {0, 1}

    def test_seeded_runs_match(self, worked_problem):
        """Same seed, same vector."""
        qubo = vrp_to_qubo(worked_problem)
        x1 = AnnealingSampler(max_iter=500, seed=8).sample(qubo, worked_problem)
        x2 = AnnealingSampler(max_iter=500, seed=8).sample(qubo, worked_problem)
        np.testing.assert_array_equal(x1, x2)

    def test_no_variables(self):
        """An empty problem yields an empty vector."""
        problem = VRPProblem(nodes=[], vehicles=[Vehicle(id=0)], distance_matrix=[])
        x = AnnealingSampler(seed=0).sample(vrp_to_qubo(problem), problem)
        assert x.size == 0


class TestCreateSampler:
    """Tests for create_sampler."""

    def test_default_from_settings(self):
        """The settings pick the sampler."""
        sampler = create_sampler(settings=Settings(DEFAULT_SAMPLER="annealing"))
        assert isinstance(sampler, AnnealingSampler)

    def test_by_name(self):
        """An explicit name wins over the settings."""
        sampler = create_sampler("jittered", seed=1, settings=Settings(SAMPLER_JITTER=0.1))
        assert isinstance(sampler, JitteredNearestNeighborSampler)
        assert sampler.jitter == 0.1

    def test_unknown_name(self):
        """Unknown names are rejected."""
        with pytest.raises(InvalidInputException):
            create_sampler("quantum_annealer", settings=Settings())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
