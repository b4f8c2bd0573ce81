"""
Test command-line behavior: argument handling, exit codes and run history.
"""

from datetime import datetime

import pytest

from imagesort import __version__
from imagesort.cli import translate_legacy_args


class TestLegacyArguments:
    """key=value argument translation."""

    def test_value_options(self):
        assert translate_legacy_args([
            'source=C:\\Photos', 'target="/tmp/out"', 'sortby=date', 'structure=YYYY/MM',
        ]) == [
            "--source", "C:\\Photos", "--target", "/tmp/out",
            "--sort-by", "date", "--structure", "YYYY/MM",
        ]

    def test_boolean_options_only_for_true(self):
        assert translate_legacy_args(["rename=true", "overwrite=True", "dryrun=yes"]) == [
            "--rename", "--overwrite",
        ]

    def test_keep_original_false_moves(self):
        assert translate_legacy_args(["keeporiginal=false"]) == ["--move"]
        assert translate_legacy_args(["keeporiginal=true"]) == []

    def test_keys_are_case_insensitive(self):
        assert translate_legacy_args(["SortBy=size"]) == ["--sort-by", "size"]

    def test_other_arguments_pass_through(self):
        assert translate_legacy_args(["/photos", "--verbose", "color=red"]) == [
            "/photos", "--verbose", "color=red",
        ]


class TestBasicOperations:
    """Exit codes and console output."""

    def test_version(self, cli_runner, test_config_path):
        result = cli_runner("--version", config_path=test_config_path)
        assert result.exit_code == 0
        assert result.output.strip() == __version__

    def test_help(self, cli_runner, test_config_path):
        result = cli_runner("--help", config_path=test_config_path)
        assert result.exit_code == 0
        assert "--sort-by" in result.output
        assert "--structure" in result.output

    def test_missing_sort_key(self, cli_runner, create_test_files, tmp_path, test_config_path):
        source = create_test_files([{"name": "photo.jpg"}])
        result = cli_runner(source, tmp_path / "target", config_path=test_config_path)
        assert result.exit_code == 2
        assert "sort" in result.error

    def test_missing_paths(self, cli_runner, test_config_path):
        result = cli_runner("--sort-by", "date", config_path=test_config_path)
        assert result.exit_code == 2

    def test_invalid_sort_key(self, cli_runner, create_test_files, tmp_path, test_config_path):
        source = create_test_files([{"name": "photo.jpg"}])
        result = cli_runner(source, tmp_path / "target", "--sort-by", "color",
                            config_path=test_config_path)
        assert result.exit_code == 2

    def test_missing_source(self, cli_runner, tmp_path, test_config_path):
        result = cli_runner(tmp_path / "missing", tmp_path / "target", "--sort-by", "date",
                            config_path=test_config_path)
        assert result.exit_code == 1
        assert "Source directory does not exist" in result.output
        assert not (tmp_path / "target").exists()

    def test_dry_run(self, cli_runner, create_test_files, tmp_path, test_config_path):
        source = create_test_files([
            {"name": "beach.jpg", "mtime": datetime(2021, 6, 15, 10, 0, 0)},
            {"name": "zoo.png", "mtime": datetime(2021, 6, 16, 10, 0, 0)},
        ])
        target = tmp_path / "target"

        result = cli_runner(source, target, "--sort-by", "name", "--dry-run",
                            config_path=test_config_path)

        assert result.exit_code == 0
        assert "DRY RUN" in result.output
        assert "Sorting Summary" in result.output
        assert not target.exists()
        assert (source / "beach.jpg").exists()
        assert not (test_config_path.parent / "runs.log").exists()
        assert not (test_config_path.parent / "history").exists()

    def test_legacy_invocation(self, cli_runner, create_test_files, tmp_path, test_config_path):
        source = create_test_files([{"name": "beach.jpg"}])
        target = tmp_path / "target"

        result = cli_runner(f"source={source}", f"target={target}", "sortby=NAME",
                            "keeporiginal=false", config_path=test_config_path)

        assert result.exit_code == 0
        assert (target / "B" / "beach.jpg").exists()
        assert not (source / "beach.jpg").exists()

    def test_date_without_structure_warns(self, cli_runner, create_test_files, tmp_path,
                                          test_config_path):
        source = create_test_files([{"name": "beach.jpg", "mtime": datetime(2021, 6, 15)}])
        result = cli_runner(source, tmp_path / "target", "--sort-by", "date",
                            config_path=test_config_path)

        assert result.exit_code == 0
        assert "structure" in result.output
        assert (tmp_path / "target" / "2021" / "06" / "beach.jpg").exists()


class TestRunHistory:
    """Per-run log files and the runs.log audit trail."""

    def test_real_run_is_recorded(self, cli_runner, create_test_files, tmp_path,
                                  test_config_path):
        source = create_test_files([
            {"name": "small.jpg", "size": 10},
            {"name": "large.jpg", "size": 10_000_000},
        ])
        target = tmp_path / "target"

        result = cli_runner(source, target, "--sort-by", "size", config_path=test_config_path)

        assert result.exit_code == 0
        assert "Sorting completed successfully" in result.output
        assert (target / "Small" / "small.jpg").exists()
        assert (target / "Large" / "large.jpg").exists()
        assert (source / "small.jpg").exists()

        runs_log = (test_config_path.parent / "runs.log").read_text()
        assert "| SUCCESS |" in runs_log
        assert "Sorted: 2" in runs_log
        assert "Mode: COPY" in runs_log

        run_logs = list((test_config_path.parent / "history").glob("*/sort.log"))
        assert len(run_logs) == 1
        assert "small.jpg" in run_logs[0].read_text()

    def test_partial_run(self, cli_runner, create_test_files, tmp_path, test_config_path):
        source = create_test_files([{"name": "photo.jpg", "content": b"new"}])
        target = tmp_path / "target"
        # A directory squats on the only free name, so the copy fails
        (target / "P" / "photo.jpg").mkdir(parents=True)

        result = cli_runner(source, target, "--sort-by", "name", "--overwrite",
                            config_path=test_config_path)

        assert result.exit_code == 0
        assert "could not be sorted" in result.output
        runs_log = (test_config_path.parent / "runs.log").read_text()
        assert "| PARTIAL |" in runs_log

    @pytest.mark.parametrize("flag", ["--move", "-m"])
    def test_move_mode(self, cli_runner, create_test_files, tmp_path, test_config_path, flag):
        source = create_test_files([{"name": "photo.jpg"}])
        target = tmp_path / "target"

        result = cli_runner(source, target, "--sort-by", "name", flag,
                            config_path=test_config_path)

        assert result.exit_code == 0
        assert not (source / "photo.jpg").exists()
        assert (target / "P" / "photo.jpg").exists()
        assert "Mode: MOVE" in (test_config_path.parent / "runs.log").read_text()
