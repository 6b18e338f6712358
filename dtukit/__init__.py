"""Payload parsers, inverter models and helpers for Hoymiles micro-inverters."""

__version__ = "0.1.0"