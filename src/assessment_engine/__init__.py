"""
Course assessment engine.

Runs timed quiz and assignment attempts: captures answers, enforces attempt,
deadline and prerequisite policy, auto-grades deterministic question types,
applies late penalties and gates answer disclosure until the deadline.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
