"""
CLI operations unit tests.

Tests CLI commands and operations:
- plan: Normalize a findings file and build the execution plan
- simulate: Run the plan with simulated actions and --fail specs
- graph: Show dependency edges or the impact of one module failure
- Argument validation, error exit codes and saved reports
"""

import argparse
import json
import pytest
from argparse import Namespace
from io import StringIO
from rich.console import Console

from remediation_planner.__main__ import main, EXIT_RUN_ABORTED
from remediation_planner.cli.cli_setup import (
    validate_fail_spec, validate_module_name, load_findings_file, parse_arguments
)
from remediation_planner.cli.context import CliContext
from remediation_planner.cli.operations import (
    build_simulated_actions, handle_plan, handle_simulate, handle_graph
)
from remediation_planner.utils.constants import OutcomeStatus
from remediation_planner.utils.exceptions import AuditInputError
from tests.conftest import write_config_file, write_findings_file


@pytest.fixture
def mock_ctx(default_graph, default_policy):
    """CLI context with the default graph and policy."""
    console = Console(file=StringIO(), force_terminal=False)
    ctx = CliContext(console=console, verbose=False, json_output_mode=False)
    ctx.graph = default_graph
    ctx.policy = default_policy
    ctx.priorities = {}
    return ctx


@pytest.fixture
def findings_file(temp_dir, raw_audit_results):
    return write_findings_file(temp_dir, raw_audit_results)


@pytest.mark.unit
class TestArgumentValidation:
    """Test argument type validators and parsing."""

    def test_valid_module(self):
        assert validate_module_name('AppUpgrade') == 'AppUpgrade'

    def test_invalid_module(self):
        with pytest.raises(argparse.ArgumentTypeError, match="Unknown module: Defrag"):
            validate_module_name('Defrag')

    @pytest.mark.parametrize("value,expected", [
        ("EssentialApps", ("EssentialApps", None)),
        ("EssentialApps:2", ("EssentialApps", 2)),
    ])
    def test_fail_spec(self, value, expected):
        assert validate_fail_spec(value) == expected

    @pytest.mark.parametrize("value", ["EssentialApps:0", "EssentialApps:x", "Defrag:1"])
    def test_invalid_fail_spec(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            validate_fail_spec(value)

    def test_parse_simulate(self):
        args = parse_arguments(['simulate', '-f', 'f.json', '--fail', 'AppUpgrade', '--fail', 'EssentialApps:1'])

        assert args.command == 'simulate'
        assert args.fail_specs == [('AppUpgrade', None), ('EssentialApps', 1)]
        assert args.no_delay is False

    def test_parse_rejects_unknown_fail_module(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(['simulate', '-f', 'f.json', '--fail', 'Defrag'])
        assert exc_info.value.code == 2


@pytest.mark.unit
class TestLoadFindingsFile:
    """Test findings file loading errors."""

    def test_missing_file(self, temp_dir):
        with pytest.raises(AuditInputError, match="not found"):
            load_findings_file(str(temp_dir / "missing.json"))

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("{not json", encoding='utf-8')
        with pytest.raises(AuditInputError, match="not valid JSON"):
            load_findings_file(str(path))

    def test_not_an_object(self, temp_dir):
        path = temp_dir / "list.json"
        path.write_text("[1, 2]", encoding='utf-8')
        with pytest.raises(AuditInputError, match="JSON object"):
            load_findings_file(str(path))


@pytest.mark.unit
class TestOperations:
    """Test the subcommand handlers directly."""

    def test_simulated_actions(self):
        actions = build_simulated_actions(['A', 'B', 'C'], [('B', None), ('C', 1)])

        assert actions['A'](Namespace(name='A')) is True
        assert actions['B'](Namespace(name='B')) is False
        assert actions['B'](Namespace(name='B')) is False
        assert actions['C'](Namespace(name='C')) is False
        assert actions['C'](Namespace(name='C')) is True

    def test_handle_plan(self, mock_ctx, findings_file):
        args = Namespace(findings=str(findings_file), save_report=False)
        data = handle_plan(args, mock_ctx)

        assert data['kind'] == 'plan'
        assert data['report_path'] is None
        assert len(data['plan'].required_modules) == 6

    def test_handle_plan_saves_report(self, mock_ctx, findings_file, temp_output_dir):
        mock_ctx.config = {'output': {'dir': str(temp_output_dir), 'compress': False}}
        args = Namespace(findings=str(findings_file), save_report=True)
        data = handle_plan(args, mock_ctx)

        assert data['report_path'].exists()
        assert data['report_path'].parent == temp_output_dir

    def test_handle_simulate(self, mock_ctx, findings_file):
        args = Namespace(findings=str(findings_file), fail_specs=[('EssentialApps', None)],
                         no_delay=True, save_report=False)
        data = handle_simulate(args, mock_ctx)
        result = data['result']

        assert data['kind'] == 'run'
        assert result.outcomes_by_status(OutcomeStatus.FAILED) == ['EssentialApps']
        assert result.report.aborted is False
        assert data['policy'] is mock_ctx.policy

    def test_handle_graph(self, mock_ctx):
        data = handle_graph(Namespace(module=None), mock_ctx)

        assert data['kind'] == 'graph'
        assert set(data['impacts']) == set(mock_ctx.graph.nodes)

    def test_handle_graph_module(self, mock_ctx):
        data = handle_graph(Namespace(module='SecurityEnhancement'), mock_ctx)

        assert data['kind'] == 'impact'
        assert data['critical'] is True
        assert data['impact'].direct_dependents == frozenset({'WindowsUpdates'})


@pytest.mark.integration
class TestMainEntryPoint:
    """Run the CLI end to end through main(argv)."""

    def test_plan_json(self, minimal_config_file, findings_file, capsys):
        main(['-c', str(minimal_config_file), '--output-format', 'json', 'plan', '-f', str(findings_file)])

        payload = json.loads(capsys.readouterr().out)
        names = [m['name'] for m in payload['plan']['required_modules']]
        assert names[0] == 'BloatwareRemoval'
        assert [m['name'] for m in payload['plan']['skipped_modules']] == ['AppUpgrade']

    def test_plan_text(self, minimal_config_file, findings_file, capsys):
        main(['-c', str(minimal_config_file), 'plan', '-f', str(findings_file)])

        out = capsys.readouterr().out
        assert "Execution Plan" in out
        assert "BloatwareRemoval" in out

    def test_simulate_retry_recovers(self, minimal_config_file, findings_file, capsys):
        main(['-c', str(minimal_config_file), '--output-format', 'json',
              'simulate', '-f', str(findings_file), '--fail', 'EssentialApps:1', '--no-delay'])

        payload = json.loads(capsys.readouterr().out)
        assert payload['report']['total_retries'] == 1
        assert payload['report']['aborted'] is False
        statuses = {o['name']: o['status'] for o in payload['outcomes']}
        assert statuses['EssentialApps'] == 'succeeded'

    def test_simulate_abort_exit_code(self, minimal_config_file, findings_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(['-c', str(minimal_config_file), '--output-format', 'json',
                  'simulate', '-f', str(findings_file), '--fail', 'BloatwareRemoval', '--no-delay'])

        assert exc_info.value.code == EXIT_RUN_ABORTED
        payload = json.loads(capsys.readouterr().out)
        assert payload['report']['aborted'] is True

    def test_strict_config_aborts_without_retry(self, strict_config_file, findings_file, capsys):
        """No retries and no continue: the first failure aborts the run."""
        with pytest.raises(SystemExit) as exc_info:
            main(['-c', str(strict_config_file), '--output-format', 'json',
                  'simulate', '-f', str(findings_file), '--fail', 'EssentialApps:1'])

        assert exc_info.value.code == EXIT_RUN_ABORTED
        payload = json.loads(capsys.readouterr().out)
        outcomes = {o['name']: o for o in payload['outcomes']}
        assert outcomes['EssentialApps']['status'] == 'failed'
        assert outcomes['EssentialApps']['attempts'] == 1
        assert outcomes['WindowsUpdates']['status'] == 'not_run'
        assert payload['report']['total_retries'] == 0
        assert payload['failure_policy']['critical_modules'] == ['BloatwareRemoval']

    def test_graph_module_json(self, minimal_config_file, capsys):
        main(['-c', str(minimal_config_file), '--output-format', 'json', 'graph', '-m', 'BloatwareRemoval'])

        payload = json.loads(capsys.readouterr().out)
        assert payload['impact']['impact_level'] == 'Medium'
        assert payload['critical'] is True

    def test_save_report(self, minimal_config_file, findings_file, temp_output_dir, capsys):
        main(['-c', str(minimal_config_file), '--output-format', 'json', '--save-report',
              '-o', str(temp_output_dir), 'plan', '-f', str(findings_file)])

        payload = json.loads(capsys.readouterr().out)
        assert payload['report_path'].startswith(str(temp_output_dir))
        assert len(list(temp_output_dir.glob("execution-plan_*.json"))) == 1

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "No command given" in capsys.readouterr().out

    def test_missing_findings_json_error(self, minimal_config_file, temp_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(['-c', str(minimal_config_file), '--output-format', 'json',
                  'plan', '-f', str(temp_dir / "missing.json")])

        assert exc_info.value.code == 1
        error = json.loads(capsys.readouterr().out)
        assert error['error'] == "Audit Input Error"

    def test_cyclic_graph_error(self, temp_config_dir, minimal_config_data, findings_file, capsys):
        minimal_config_data['modules'] = {'dependencies': {
            'BloatwareRemoval': ['AppUpgrade'], 'AppUpgrade': ['BloatwareRemoval']
        }}
        config_file = write_config_file(temp_config_dir, minimal_config_data)

        with pytest.raises(SystemExit) as exc_info:
            main(['-c', str(config_file), '--output-format', 'json', 'plan', '-f', str(findings_file)])

        assert exc_info.value.code == 1
        error = json.loads(capsys.readouterr().out)
        assert error['error'] == "Dependency Graph Error"
        assert "cycle" in error['message']

    def test_invalid_policy_error(self, temp_config_dir, minimal_config_data, findings_file, capsys):
        minimal_config_data['failure_policy'] = {'max_retries': -1}
        config_file = write_config_file(temp_config_dir, minimal_config_data)

        with pytest.raises(SystemExit) as exc_info:
            main(['-c', str(config_file), 'plan', '-f', str(findings_file)])

        assert exc_info.value.code == 1
        assert "Configuration Error" in capsys.readouterr().out
