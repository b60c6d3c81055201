"""Tests for batch orchestration."""

import json
from unittest.mock import MagicMock, patch

import pytest

from testgen.config import GENERATED_MARKER, Settings
from testgen.coverage import LoopState
from testgen.errors import EnvironmentUnavailable
from testgen.pipeline import BatchReport, Outcome, ScaffoldPipeline

EXPENSE_LIST = '''
import React from "react";

interface ExpenseListProps {
    title: string;
    isLoading: boolean;
    onDelete: (id: string) => void;
}

export default function ExpenseList({ title, isLoading, onDelete }: ExpenseListProps) {
    return (
        <section>
            <h2>{title}</h2>
            {isLoading && <Spinner data-testid="spinner" />}
            <input placeholder="Search expenses" />
            <button aria-label="Delete transaction" onClick={() => onDelete("1")} />
        </section>
    );
}
'''

HELPERS_ONLY = '''
export function formatCurrency(value: number) {
    return `$${value.toFixed(2)}`;
}
'''

SOURCE = "src/components/ExpenseList.tsx"
TARGET = "src/components/__tests__/ExpenseList.test.tsx"


@pytest.fixture
def coverage_settings(tmp_path):
    return Settings(root_dir=tmp_path, coverage_enabled=True, coverage_threshold=50.0)


@pytest.mark.requires_tree_sitter
class TestProcessFile:
    """Test per-file outcomes."""

    def test_generates_pass_one(self, settings, write_source, tmp_path):
        write_source(SOURCE, EXPENSE_LIST)

        result = ScaffoldPipeline(settings).process_file(SOURCE)

        assert result.outcome == Outcome.GENERATED
        assert result.components == ["ExpenseList"]
        assert result.coverage is None
        content = (tmp_path / TARGET).read_text()
        assert content.startswith(GENERATED_MARKER + "\n")
        assert 'import ExpenseList from "../ExpenseList";' in content
        assert "onDelete: jest.fn()," in content
        assert "Conditional rendering" not in content

    def test_manual_test_untouched(self, coverage_settings, write_source, fake_runner_factory, tmp_path):
        """Test a hand-written test is skipped without running anything."""
        write_source(SOURCE, EXPENSE_LIST)
        manual = write_source(TARGET, "// written by hand\ntest('x', () => {});\n")
        before = manual.read_bytes()
        runner = fake_runner_factory(10.0)

        result = ScaffoldPipeline(coverage_settings, runner=runner).process_file(SOURCE)

        assert result.outcome == Outcome.SKIPPED_MANUAL
        assert manual.read_bytes() == before
        assert runner.calls == []

    def test_no_components(self, settings, write_source, tmp_path):
        write_source("src/utils/format.tsx", HELPERS_ONLY)

        result = ScaffoldPipeline(settings).process_file("src/utils/format.tsx")

        assert result.outcome == Outcome.SKIPPED_NO_COMPONENTS
        assert not (tmp_path / "src" / "utils" / "__tests__").exists()

    def test_unreadable(self, settings):
        result = ScaffoldPipeline(settings).process_file("src/Missing.tsx")

        assert result.outcome == Outcome.FAILED_UNREADABLE
        assert "does not exist" in result.message

    def test_low_coverage_writes_pass_two(self, coverage_settings, write_source, fake_runner_factory, tmp_path):
        """Test 35% coverage triggers the enriched pass and a second run."""
        write_source(SOURCE, EXPENSE_LIST)
        runner = fake_runner_factory(35.0, 61.0)

        result = ScaffoldPipeline(coverage_settings, runner=runner).process_file(SOURCE)

        assert result.outcome == Outcome.GENERATED
        assert result.coverage.state == LoopState.REFINED
        assert len(runner.calls) == 2
        assert runner.calls[0][0] == tmp_path / TARGET
        content = (tmp_path / TARGET).read_text()
        assert "renderUI({ isLoading: true });" in content
        assert 'expect(screen.getByTestId("spinner")).toBeInTheDocument();' in content
        assert "expect(defaultProps.onDelete).toHaveBeenCalled();" in content
        assert "Conditional rendering" not in runner.snapshots[0]

    def test_sufficient_coverage_keeps_pass_one(self, coverage_settings, write_source, fake_runner_factory, tmp_path):
        write_source(SOURCE, EXPENSE_LIST)
        runner = fake_runner_factory(72.0)

        result = ScaffoldPipeline(coverage_settings, runner=runner).process_file(SOURCE)

        assert result.coverage.state == LoopState.INITIAL
        assert len(runner.calls) == 1
        assert (tmp_path / TARGET).read_text() == runner.snapshots[0]

    def test_runner_failure_keeps_generated(self, coverage_settings, write_source, failing_runner_factory, tmp_path):
        write_source(SOURCE, EXPENSE_LIST)

        result = ScaffoldPipeline(coverage_settings, runner=failing_runner_factory()).process_file(SOURCE)

        assert result.outcome == Outcome.GENERATED
        assert result.coverage.error
        assert (tmp_path / TARGET).exists()

    def test_idempotent(self, settings, write_source, tmp_path):
        """Test two runs over an unchanged source give identical bytes."""
        write_source(SOURCE, EXPENSE_LIST)

        ScaffoldPipeline(settings).process_file(SOURCE)
        first = (tmp_path / TARGET).read_bytes()
        ScaffoldPipeline(settings).process_file(SOURCE)

        assert (tmp_path / TARGET).read_bytes() == first


@pytest.mark.requires_tree_sitter
class TestRunBatch:
    """Test whole-batch behavior."""

    def test_batch_continues_past_failures(self, settings, write_source, tmp_path):
        write_source(SOURCE, EXPENSE_LIST)
        write_source("src/utils/format.tsx", HELPERS_ONLY)

        report = ScaffoldPipeline(settings).run_batch([
            tmp_path / "src" / "Missing.tsx",
            tmp_path / SOURCE,
            tmp_path / "src" / "utils" / "format.tsx",
        ])

        assert [r.outcome for r in report.results] == [
            Outcome.FAILED_UNREADABLE,
            Outcome.GENERATED,
            Outcome.SKIPPED_NO_COMPONENTS,
        ]
        assert report.counts["generated"] == 1
        assert len(report.failed) == 1

    def test_deeply_nested_source_does_not_stop_batch(self, settings, write_source, tmp_path):
        """Test a pathologically deep file is handled and the next file still runs."""
        write_source("src/Big.tsx", "export const s = " + " + ".join(['"a"'] * 1500) + ";\n")
        write_source(SOURCE, EXPENSE_LIST)

        report = ScaffoldPipeline(settings).run_batch([tmp_path / "src" / "Big.tsx", tmp_path / SOURCE])

        assert [r.outcome for r in report.results] == [
            Outcome.SKIPPED_NO_COMPONENTS,
            Outcome.GENERATED,
        ]

    def test_unexpected_error_becomes_failed_result(self, settings, write_source, tmp_path):
        write_source("src/Broken.tsx", EXPENSE_LIST)
        write_source(SOURCE, EXPENSE_LIST)
        pipeline = ScaffoldPipeline(settings)
        real_analyze = pipeline.analyzer.analyze

        def analyze(parsed):
            if parsed.file_path.endswith("Broken.tsx"):
                raise ValueError("unexpected node shape")
            return real_analyze(parsed)

        with patch.object(pipeline.analyzer, "analyze", side_effect=analyze):
            report = pipeline.run_batch([tmp_path / "src" / "Broken.tsx", tmp_path / SOURCE])

        broken, ok = report.results
        assert broken.outcome == Outcome.FAILED_UNREADABLE
        assert "unexpected node shape" in broken.message
        assert ok.outcome == Outcome.GENERATED
        assert not (tmp_path / "src" / "__tests__" / "Broken.test.tsx").exists()

    def test_report_saved_as_json(self, settings, write_source, tmp_path):
        write_source(SOURCE, EXPENSE_LIST)
        report = ScaffoldPipeline(settings).run_batch([tmp_path / SOURCE])

        saved = report.save(tmp_path / "out" / "report.json")

        data = json.loads(saved.read_text())
        assert data["total"] == 1
        assert data["results"][0]["outcome"] == "generated"


class TestEnvironment:
    """Test toolchain failures."""

    def test_environment_unavailable_propagates(self, settings):
        with patch(
            "testgen.indexer.loader.TreeSitterParser",
            side_effect=EnvironmentUnavailable("tree-sitter is not available"),
        ):
            with pytest.raises(EnvironmentUnavailable):
                ScaffoldPipeline(settings)

    def test_empty_report(self):
        report = BatchReport()
        assert report.counts == {
            "generated": 0,
            "skipped-existing-manual-test": 0,
            "skipped-no-components": 0,
            "failed-unreadable": 0,
        }

    def test_environment_unavailable_mid_batch_propagates(self, settings, tmp_path):
        pipeline = ScaffoldPipeline(settings, loader=MagicMock())
        pipeline.loader.load.side_effect = EnvironmentUnavailable("grammar went away")

        with pytest.raises(EnvironmentUnavailable):
            pipeline.run_batch([tmp_path / SOURCE])
