# Copyright (c) Syntropy Systems
"""Tests for matrix expansion and command construction."""

from pathlib import Path

from evalgrid.config import EvaluationConfig
from evalgrid.matrix import Cell, build_command, command_params, expand_matrix


class TestExpandMatrix:
    """Tests for expand_matrix."""

    def test_suite_major_order(self) -> None:
        """Test that levels vary fastest."""
        cells = expand_matrix(["a", "b"], [0, 1, 2])

        assert cells == [
            Cell("a", 0), Cell("a", 1), Cell("a", 2),
            Cell("b", 0), Cell("b", 1), Cell("b", 2),
        ]

    def test_size_is_product(self) -> None:
        """Test the number of cells."""
        assert len(expand_matrix(["a", "b", "c"], [0, 1])) == 6

    def test_identifiers_pass_through(self) -> None:
        """Test that unknown suites and levels are not validated."""
        cells = expand_matrix(["made_up_suite"], [7])

        assert cells == [Cell("made_up_suite", 7)]


class TestCell:
    """Tests for run identifiers."""

    def test_run_id(self) -> None:
        """Test the run identifier format."""
        cell = Cell("long_horizon", 2)

        assert cell.run_id("openvla", "20250101_120000") == (
            "EVAL-long_horizon-openvla-20250101_120000-L2"
        )

    def test_log_path_differs_only_by_level(self, temp_dir: Path) -> None:
        """Test that log paths of one suite differ only in the level tag."""
        first = Cell("suite_a", 0).log_path(temp_dir, "openvla", "ts")
        second = Cell("suite_a", 1).log_path(temp_dir, "openvla", "ts")

        assert first.parent == second.parent == temp_dir
        assert first.name.replace("-L0", "-L1") == second.name

    def test_log_path_is_deterministic(self, temp_dir: Path) -> None:
        """Test that the same batch addresses the same file."""
        cell = Cell("suite_a", 0)

        assert cell.log_path(temp_dir, "m", "ts") == cell.log_path(temp_dir, "m", "ts")


class TestBuildCommand:
    """Tests for build_command."""

    def test_command_layout(self) -> None:
        """Test that the program is followed by --name value pairs."""
        config = EvaluationConfig(
            checkpoint="/ckpt",
            action_decoder_path="/decoder",
            num_trials=5,
            seed=3,
            output_dir=Path("/out"),
            program=("python", "eval.py"),
            light=True,
        )

        command = build_command(config, Cell("suite_a", 1))

        assert command[:2] == ["python", "eval.py"]
        pairs = dict(zip(command[2::2], command[3::2]))
        assert pairs == {
            "--pretrained_checkpoint": "/ckpt",
            "--action_decoder_path": "/decoder",
            "--model_family": "openvla",
            "--task_suite_name": "suite_a",
            "--task_level": "1",
            "--num_trials_per_task": "5",
            "--seed": "3",
            "--local_log_dir": "/out",
            "--run_id_note": "L1",
            "--add_noise": "false",
            "--adjust_light": "true",
            "--randomize_color": "false",
            "--camera_offset": "false",
            "--save_video_mode": "first_success_failure",
        }

    def test_values_with_spaces_stay_single_arguments(self) -> None:
        """Test that no shell quoting is involved."""
        config = EvaluationConfig(checkpoint="/my models/ckpt v2")

        command = build_command(config, Cell("suite_a", 0))

        assert "/my models/ckpt v2" in command

    def test_param_order(self) -> None:
        """Test that parameters keep their fixed order."""
        names = [name for name, _ in command_params(EvaluationConfig(), Cell("s", 0))]

        assert names[0] == "pretrained_checkpoint"
        assert names[-1] == "save_video_mode"
        assert len(names) == 14
