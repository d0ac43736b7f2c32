"""Reporting of worker results."""

from __future__ import annotations
