"""Request frames, response parsers and inverter state for Hoymiles HM-series micro inverters."""

__version__ = "0.1.0"

__all__ = [
    "alarm_log",
    "commands",
    "control_commands",
    "crc",
    "data_commands",
    "devinfo",
    "fragment",
    "inverter",
    "models",
    "parser",
    "reset_reason",
    "statistics",
    "system_config",
    "timing",
    "topic",
]