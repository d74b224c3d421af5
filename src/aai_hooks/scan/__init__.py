"""Working-tree scanners."""

from aai_hooks.scan.anti_patterns import AntiPatternScanner, ScanResult, render_report

__all__ = ["AntiPatternScanner", "ScanResult", "render_report"]
