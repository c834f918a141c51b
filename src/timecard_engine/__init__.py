"""Timekeeping extract to payroll and invoice transformation engine."""

__version__ = "0.1.0"
