"""
Tests for number formatting, exceptions and logging setup.
"""

import json
import logging

import numpy as np
import pytest

from robotcell.core.exceptions import (
    ConfigurationError,
    IOIndexError,
    MechanismDefinitionError,
    PostProcessorError,
    RobotCellError,
)
from robotcell.core.logging import configure_logging, get_logger, program_context, round_floats
from robotcell.core.manufacturer import Manufacturer
from robotcell.core.units import format_number


class TestFormatNumber:
    """Tests for format_number."""

    @pytest.mark.parametrize(
        "value, decimals, expected",
        [
            (41.25701, 4, "41.257"),
            (300.0, 3, "300"),
            (0.5, 0, "1"),
            (-0.00001, 3, "0"),
            (1.23456, 2, "1.23"),
            (-3.14159265, 4, "-3.1416"),
            (5000, 3, "5000"),
        ],
    )
    def test_format(self, value, decimals, expected):
        """Test rounding and trailing zero stripping."""
        assert format_number(value, decimals) == expected

    def test_default_decimals(self):
        """Test three decimals by default."""
        assert format_number(1.23456) == "1.235"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_details_in_message(self):
        """Test details are appended to the string form."""
        error = RobotCellError("Broken", details={"key": 1})
        assert str(error) == "Broken - Details: {'key': 1}"
        assert error.message == "Broken"

    def test_plain_message(self):
        """Test the string form without details."""
        assert str(RobotCellError("Broken")) == "Broken"

    def test_hierarchy(self):
        """Test configuration errors are catchable as RobotCellError."""
        assert issubclass(MechanismDefinitionError, ConfigurationError)
        assert issubclass(IOIndexError, ConfigurationError)
        assert issubclass(PostProcessorError, RobotCellError)

    def test_io_index_error_keeps_index(self):
        """Test IOIndexError carries the rejected index."""
        error = IOIndexError("Index of IO is out of range.", index=7)
        assert error.index == 7


class TestManufacturer:
    """Tests for Manufacturer."""

    def test_str_is_value(self):
        """Test the string form is the display name."""
        assert str(Manufacturer.STAUBLI) == "Staubli"
        assert Manufacturer("UR") is Manufacturer.UR


class TestLogging:
    """Tests for logging configuration."""

    def test_json_output(self, temp_dir):
        """Test JSON lines are written to the log file."""
        log_file = temp_dir / "robotcell.log"
        configure_logging(level="INFO", json_output=True, log_file=str(log_file))

        get_logger("robotcell.test").info("program_compiled", targets=2)
        for handler in logging.root.handlers:
            handler.flush()

        lines = [line for line in log_file.read_text().splitlines() if line.strip()]
        record = json.loads(lines[-1])
        assert record["event"] == "program_compiled"
        assert record["targets"] == 2
        assert record["level"] == "info"

        configure_logging(level="WARNING")

    def test_program_context(self, temp_dir):
        """Test events inside a program context carry the program and system names."""
        log_file = temp_dir / "robotcell.log"
        configure_logging(level="INFO", json_output=True, log_file=str(log_file))

        logger = get_logger("robotcell.test")
        with program_context("Weld", "IRB120"):
            logger.info("targets_fixed", step=0.1 + 0.2)
        logger.info("outside")
        for handler in logging.root.handlers:
            handler.flush()

        inside, outside = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()][-2:]
        assert inside["program"] == "Weld"
        assert inside["system"] == "IRB120"
        assert inside["step"] == 0.3
        assert "program" not in outside

        configure_logging(level="WARNING")

    def test_round_floats(self):
        """Test floats, float lists and arrays are rounded and other values kept."""
        event = round_floats(
            None,
            "info",
            {
                "event": "solved",
                "joints": [0.1234567891, -1.0000000004],
                "planes": np.array([1.0000000001, 2.5]),
                "error": np.float64(0.30000000000000004),
                "count": 3,
            },
        )
        assert event == {
            "event": "solved",
            "joints": [0.123457, -1.0],
            "planes": [1.0, 2.5],
            "error": 0.3,
            "count": 3,
        }
