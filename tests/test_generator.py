"""Tests for the mutation generation pipeline."""

import pytest
from hypothesis import HealthCheck, given, settings

from pyconcolic.config import SolverConfig
from pyconcolic.core import expressions as ex
from pyconcolic.core.exceptions import UndefinedExpressionError, UnsupportedExpressionError
from pyconcolic.logging import LogLevel
from pyconcolic.solving.generator import MutationGenerator, generate_mutations
from pyconcolic.solving.solver import SolverResult, SolverSession
from pyconcolic.stages.testcase import apply_mutation
from pyconcolic.testing.strategies import COMPARISONS, concolic_traces


def byte_branch(recorder, offset, kind, constant, taken):
    """Record ``input[offset] <kind> constant`` and a path constraint on it."""
    x = recorder.record(ex.InputByte(offset=offset))
    c = recorder.record(ex.Integer(value=constant, bits=8))
    cond = recorder.record(kind(a=x, b=c))
    return recorder.record(ex.PathConstraint(constraint=cond, taken=taken))


class TestScenarios:
    def test_not_taken_equality_is_flipped(self, recorder, logger):
        byte_branch(recorder, 0, ex.Equal, 65, taken=False)
        assert generate_mutations(recorder.records, logger=logger) == [[(0, 65)]]

    def test_taken_equality_is_flipped(self, recorder, logger):
        byte_branch(recorder, 0, ex.Equal, 65, taken=True)
        mutations = generate_mutations(recorder.records, logger=logger)
        assert len(mutations) == 1
        [(offset, value)] = mutations[0]
        assert offset == 0
        assert value != 65

    def test_undefined_reference_is_fatal(self, recorder, logger):
        x = recorder.record(ex.InputByte(offset=0))
        recorder.record(ex.Equal(a=x, b=ex.SymExprRef(99)))
        with pytest.raises(UndefinedExpressionError):
            generate_mutations(recorder.records, logger=logger)

    def test_path_constraint_on_undefined_reference_is_fatal(self, recorder, logger):
        recorder.record(ex.PathConstraint(constraint=ex.SymExprRef(42), taken=True))
        with pytest.raises(UndefinedExpressionError):
            generate_mutations(recorder.records, logger=logger)

    def test_unsupported_reference_is_fatal(self, recorder, logger):
        wide = recorder.record(ex.Integer128(high=0, low=1))
        recorder.record(ex.PathConstraint(constraint=wide, taken=True))
        with pytest.raises(UnsupportedExpressionError):
            generate_mutations(recorder.records, logger=logger)

    def test_unreferenced_unsupported_records_are_harmless(self, recorder, logger):
        recorder.record(ex.FloatValue(value=0.5))
        recorder.record(ex.Call(location=0x1000))
        byte_branch(recorder, 0, ex.Equal, 65, taken=False)
        assert generate_mutations(recorder.records, logger=logger) == [[(0, 65)]]


class TestGeneration:
    def test_no_path_constraints_no_mutations(self, recorder, logger):
        x = recorder.record(ex.InputByte(offset=0))
        recorder.record(ex.Add(a=x, b=x))
        assert generate_mutations(recorder.records, logger=logger) == []
        assert generate_mutations([], logger=logger) == []

    def test_multi_byte_comparison(self, recorder, logger):
        lo = recorder.record(ex.InputByte(offset=1))
        hi = recorder.record(ex.InputByte(offset=0))
        word = recorder.record(ex.Concat(a=hi, b=lo))
        magic = recorder.record(ex.Integer(value=0x4142, bits=16))
        cond = recorder.record(ex.Equal(a=word, b=magic))
        recorder.record(ex.PathConstraint(constraint=cond, taken=False))
        [mutation] = generate_mutations(recorder.records, logger=logger)
        assert apply_mutation(b"\x00\x00\x00", mutation) == b"AB\x00"

    def test_little_endian_load(self, recorder, logger):
        buffer = recorder.record(ex.Integer(value=0, bits=16))
        first = recorder.record(ex.InputByte(offset=0))
        second = recorder.record(ex.InputByte(offset=1))
        pair = recorder.record(ex.Concat(a=first, b=second))
        loaded = recorder.record(ex.Insert(target=buffer, to_insert=pair, offset=0, little_endian=True))
        magic = recorder.record(ex.Integer(value=0xBEEF, bits=16))
        cond = recorder.record(ex.Equal(a=loaded, b=magic))
        recorder.record(ex.PathConstraint(constraint=cond, taken=False))
        [mutation] = generate_mutations(recorder.records, logger=logger)
        assert dict(mutation) == {0: 0xEF, 1: 0xBE}

    def test_constant_constraints_are_skipped(self, recorder, logger):
        t = recorder.record(ex.TrueExpr())
        recorder.record(ex.PathConstraint(constraint=t, taken=True))
        one = recorder.record(ex.Integer(value=1, bits=8))
        same = recorder.record(ex.Equal(a=one, b=one))
        recorder.record(ex.PathConstraint(constraint=same, taken=False))
        generator = MutationGenerator(logger=logger)
        assert generator.run(recorder.records) == []
        assert generator.stats.constant_constraints == 2
        assert generator.stats.flips_sat == generator.stats.flips_unsat == 0

    def test_later_constraints_see_the_prefix(self, recorder, logger):
        byte_branch(recorder, 0, ex.UnsignedGreaterThan, 10, taken=True)
        # under input[0] > 10, input[0] < 5 can never be taken
        byte_branch(recorder, 0, ex.UnsignedLessThan, 5, taken=False)
        generator = MutationGenerator(logger=logger)
        mutations = generator.run(recorder.records)
        assert len(mutations) == 1
        assert mutations[0][0][1] <= 10
        assert generator.stats.flips_unsat == 1
        assert not generator.stats.stopped_early

    def test_infeasible_prefix_stops_generation(self, recorder, logger):
        byte_branch(recorder, 0, ex.Equal, 65, taken=True)
        # contradicts the first branch: the recorded path is now infeasible
        byte_branch(recorder, 0, ex.Equal, 66, taken=True)
        byte_branch(recorder, 1, ex.Equal, 1, taken=True)
        byte_branch(recorder, 2, ex.Equal, 2, taken=False)
        generator = MutationGenerator(logger=logger)
        mutations = generator.run(recorder.records)
        assert len(mutations) == 2
        assert generator.stats.stopped_early
        assert generator.stats.path_constraints == 3
        assert all(offset == 0 for mutation in mutations for offset, _ in mutation)

    def test_unknown_results_never_stop_generation(self, recorder, logger, monkeypatch):
        monkeypatch.setattr(SolverSession, "check", lambda self: SolverResult.unknown())
        for offset in range(3):
            byte_branch(recorder, offset, ex.Equal, 7, taken=True)
        generator = MutationGenerator(logger=logger)
        assert generator.run(recorder.records) == []
        assert generator.stats.flips_unknown == 3
        assert generator.stats.path_constraints == 3
        assert not generator.stats.stopped_early

    def test_max_mutations(self, recorder, logger):
        for offset in range(4):
            byte_branch(recorder, offset, ex.Equal, 7, taken=False)
        mutations = generate_mutations(recorder.records, SolverConfig(max_mutations=2), logger)
        assert len(mutations) == 2
        assert dict(mutations[0]) == {0: 7}
        # the model also pins earlier bytes so the recorded prefix still holds
        assert dict(mutations[1])[1] == 7
        assert dict(mutations[1]).get(0, 0) != 7

    def test_mutations_follow_trace_order(self, recorder, logger):
        for offset in (3, 1, 2):
            byte_branch(recorder, offset, ex.Equal, 0x30 + offset, taken=False)
        mutations = generate_mutations(recorder.records, logger=logger)
        assert len(mutations) == 3
        for mutation, offset in zip(mutations, (3, 1, 2)):
            assert dict(mutation)[offset] == 0x30 + offset

    def test_outcomes_are_logged(self, recorder, logger):
        byte_branch(recorder, 0, ex.Equal, 65, taken=False)
        generate_mutations(recorder.records, logger=logger)
        traces = logger.get_entries(level=LogLevel.TRACE, category="concolic")
        assert len(traces) == 1
        assert "sat" in traces[0].message
        summary = logger.get_entries(level=LogLevel.VERBOSE, category="concolic")
        assert summary[-1].context["flips_sat"] == 1


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(concolic_traces())
def test_at_most_one_mutation_per_path_constraint(generated):
    mutations = generate_mutations(generated.records)
    assert len(mutations) <= generated.path_constraints
    for mutation in mutations:
        for offset, value in mutation:
            assert 0 <= offset < len(generated.seed)
            assert 0 <= value <= 0xFF


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(concolic_traces(max_branches=1))
def test_mutation_flips_the_branch(generated):
    mutations = generate_mutations(generated.records)
    if not mutations:
        return
    [mutation] = mutations
    byte, constant, condition, constraint = (expr for _, expr in generated.records)
    kind = next(op for op, (cls, _) in COMPARISONS.items() if cls is type(condition))
    patched = apply_mutation(generated.seed, mutation)
    assert COMPARISONS[kind][1](patched[byte.offset], constant.value) is not constraint.taken
