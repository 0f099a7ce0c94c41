"""Tests for node ids, factories, graph utilities and the seeding helpers."""

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from pathwise_aad import (
    ADFactory,
    ADVar,
    NodeIdCounter,
    NodeOrderError,
    RandomVariable,
    analyze_graph_complexity,
    check_id_ordering,
    get_factory,
    get_graph_stats,
    global_counter,
    grad,
    grads,
    grads_list,
    print_graph_summary,
    use_factory,
    value,
)

UNARY = [
    lambda x: x.exp(),
    lambda x: x.squared(),
    lambda x: x.abs().add(1.0).sqrt(),
    lambda x: x.sin(),
    lambda x: x.average(),
]
BINARY = [
    lambda x, y: x.add(y),
    lambda x, y: x.mult(y),
    lambda x, y: x.sub(y),
    lambda x, y: x.cap(y),
    lambda x, y: x.average(y.abs().add(1.0)),
]
TERNARY = [
    lambda x, y, z: x.add_product(y, z),
    lambda x, y, z: x.choose(y, z),
    lambda x, y, z: x.accrue(abs(y), abs(z)),
]


def _random_graph(factory, rng, n_leaves=4, n_ops=40):
    values = [factory.create_variable(rng.standard_normal(3)) for _ in range(n_leaves)]
    for _ in range(n_ops):
        kind = rng.integers(3)
        if kind == 0:
            op = UNARY[rng.integers(len(UNARY))]
            values.append(op(values[rng.integers(len(values))]))
        elif kind == 1:
            op = BINARY[rng.integers(len(BINARY))]
            args = [values[i] for i in rng.integers(len(values), size=2)]
            values.append(op(*args))
        else:
            op = TERNARY[rng.integers(len(TERNARY))]
            args = [values[i] if rng.random() < 0.8 else float(rng.standard_normal())
                    for i in rng.integers(len(values), size=3)]
            if not isinstance(args[0], ADVar):
                args[0] = values[-1]
            values.append(op(*args))
    return values[-1]


class TestIdOrdering:
    """Every argument has a smaller id than its consumer."""

    @pytest.mark.parametrize("seed", range(10))
    def test_random_graphs(self, factory, seed):
        rng = np.random.default_rng(seed)
        root = _random_graph(factory, rng)
        assert check_id_ordering(root) == []
        stack, seen = [root.node], set()
        while stack:
            node = stack.pop()
            if node.id in seen:
                continue
            seen.add(node.id)
            for argument in node.arguments:
                assert argument.id < node.id
                stack.append(argument)

    @pytest.mark.parametrize("seed", range(5))
    def test_gradient_keys_are_leaves(self, factory, seed):
        rng = np.random.default_rng(seed)
        root = _random_graph(factory, rng)
        nodes = {}
        stack = [root.node]
        while stack:
            node = stack.pop()
            if node.id not in nodes:
                nodes[node.id] = node
                stack.extend(node.arguments)
        for node_id in root.get_gradient():
            assert nodes[node_id].is_leaf()
            assert not nodes[node_id].is_constant

    def test_constants_get_ids_before_result(self, factory):
        x = factory.create_variable(1.0)
        y = x.mult(2.0)
        constant = y.node.arguments[1]
        assert constant.is_constant
        assert x.id < constant.id < y.id


class TestCounter:
    """Test the node id counter."""

    def test_monotonic(self):
        counter = NodeIdCounter(start=10)
        assert counter.peek() == 10
        assert [counter.next_id() for _ in range(3)] == [10, 11, 12]
        assert counter.peek() == 13

    def test_factories_share_global_counter(self):
        a, b = ADFactory(), ADFactory()
        assert a.counter is global_counter and b.counter is global_counter
        x = a.create_variable(1.0)
        y = b.create_variable(1.0)
        assert y.id > x.id

    def test_injected_counter(self):
        counter = NodeIdCounter(start=1000)
        factory = ADFactory(counter=counter)
        x = factory.create_variable(1.0)
        assert x.id == 1000
        assert x.exp().id == 1001

    def test_concurrent_construction_never_reuses_ids(self):
        """Graphs built on several threads draw distinct ids from the shared counter."""
        def build(seed):
            factory = ADFactory()
            rng = np.random.default_rng(seed)
            root = _random_graph(factory, rng, n_ops=100)
            ids = set()
            stack = [root.node]
            while stack:
                node = stack.pop()
                if node.id not in ids:
                    ids.add(node.id)
                    stack.extend(node.arguments)
            return root, ids

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(build, range(16)))

        all_ids = [i for _, ids in results for i in ids]
        assert len(all_ids) == len(set(all_ids))
        for root, _ in results:
            assert check_id_ordering(root) == []

    def test_mixing_counters_fails_loudly(self, factory):
        """A node whose id would not exceed its arguments' ids is rejected."""
        isolated = ADFactory(counter=NodeIdCounter(start=10 ** 12))
        u = isolated.create_variable(2.0).squared()
        k = factory.create_variable(3.0)
        with pytest.raises(NodeOrderError):
            k.mult(u)

    def test_concurrent_next_id(self):
        counter = NodeIdCounter()

        def draw(_):
            return [counter.next_id() for _ in range(1000)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            ids = [i for chunk in executor.map(draw, range(8)) for i in chunk]
        assert sorted(ids) == list(range(8000))


class TestFactory:
    """Test the factory selection."""

    def test_use_factory_switches_default(self):
        custom = ADFactory()
        before = get_factory()
        with use_factory(custom) as active:
            assert active is custom
            assert get_factory() is custom
        assert get_factory() is before

    def test_use_factory_is_local_to_thread(self):
        """Overlapping switches on two threads each see their own factory and restore the default."""
        before = get_factory()
        a_entered, b_entered, a_exited = threading.Event(), threading.Event(), threading.Event()
        seen = {}

        def first():
            with use_factory(ADFactory()) as active:
                seen["first"] = active
                a_entered.set()
                b_entered.wait(5)
                seen["first_inside"] = get_factory()
            a_exited.set()

        def second():
            a_entered.wait(5)
            with use_factory(ADFactory()) as active:
                seen["second"] = active
                b_entered.set()
                a_exited.wait(5)
                seen["second_inside"] = get_factory()

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert seen["first_inside"] is seen["first"]
        assert seen["second_inside"] is seen["second"]
        assert get_factory() is before

    def test_clone_independent_cuts_graph(self, factory):
        x = factory.create_variable([1.0, 2.0], time=0.5)
        y = x.squared()
        clone = y.get_clone_independent()
        np.testing.assert_array_equal(clone.get_realizations(), y.get_realizations())
        assert clone.get_filtration_time() == 0.5
        assert clone.node.is_leaf() and not clone.is_constant()
        assert clone.id > y.id

        g = clone.mult(3.0).get_gradient()
        assert set(g) == {clone.id}
        assert g[clone.id].double_value() == 3.0
        assert set(y.mult(3.0).get_gradient()) == {x.id}

    def test_result_uses_factory_of_first_advar(self, full_graph_factory, factory):
        x = full_graph_factory.create_variable(1.0)
        y = factory.create_variable(2.0)
        assert (3.0 + x).factory is full_graph_factory
        assert y.mult(x).factory is factory
        assert x.bus(y).factory is full_graph_factory

    def test_variable_names(self, factory):
        x = factory.create_variable(1.0, name="spot")
        assert x.name == "spot"
        assert "spot" in repr(x)

    def test_time_of_leaf(self, factory):
        x = factory.create_variable([1.0, 2.0], time=0.5)
        assert x.get_filtration_time() == 0.5


class TestGraphUtils:
    """Test graph inspection."""

    def _graph(self, factory):
        x1 = factory.create_variable(3.0)
        x2 = factory.create_variable(5.0)
        return x1.mult(x2).add(x1.squared())

    def test_stats(self, factory):
        stats = get_graph_stats(self._graph(factory))
        assert stats['nodes'] == 5
        assert stats['edges'] == 5
        assert stats['leaves'] == 2
        assert stats['constants'] == 0
        assert stats['max_fan_in'] == 2
        assert stats['max_fan_out'] == 2
        assert stats['operations'] == {'LEAF': 2, 'MULT': 1, 'SQUARED': 1, 'ADD': 1}
        assert stats['retained_values'] == 3
        assert stats['max_id'] - stats['min_id'] == 4

    def test_print_summary(self, factory, capsys):
        stats = print_graph_summary(self._graph(factory), detailed=True)
        out = capsys.readouterr().out
        assert "COMPUTATION GRAPH SUMMARY" in out
        assert "DETAILED NODE LIST" in out
        assert stats['nodes'] == 5

    def test_complexity_report(self, factory):
        report = analyze_graph_complexity(self._graph(factory).average())
        assert "Total operations: 4" in report
        assert "Path aggregates: 1" in report
        assert "Complexity level: Low" in report


class TestSeeds:
    """Test the convenience gradient helpers."""

    def test_grads_list(self):
        g = grads_list(lambda xs: xs[0] * xs[0] + 3 * xs[1], [2.0, 4.0])
        assert [a.double_value() for a in g] == [4.0, 3.0]

    def test_grads_dict(self):
        g = grads(lambda v: v["s"] * v["k"].exp(), {"s": 2.0, "k": 0.0})
        assert list(g) == ["s", "k"]
        assert g["s"].double_value() == pytest.approx(1.0)
        assert g["k"].double_value() == pytest.approx(2.0)

    def test_grad_pathwise(self):
        x0 = np.array([0.0, 1.0, 2.0])
        g = grad(lambda x: x.squared(), x0)
        np.testing.assert_allclose(g.get_realizations(), 2.0 * x0)

    def test_grad_of_unrelated_output_is_zero(self):
        assert grad(lambda x: 5.0, 1.0).double_value() == 0.0

    def test_value(self, factory):
        x = factory.create_variable(2.0)
        assert value(x).double_value() == 2.0
        assert value(3.0) == 3.0
        assert isinstance(value(x), RandomVariable)
