"""GUI components package.

Contains the tour overlay widgets (`coach_mark`). Import the module directly;
this package does not import PyQt6 on its own.
"""
