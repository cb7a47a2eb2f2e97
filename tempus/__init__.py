"""
tempus

Split-precision astronomical time: epochs and durations across atomic,
dynamical, coordinate and civil time scales, converted through a
user-extensible graph of offset functions.
"""

__version__ = "1.0.0"
__author__ = "Tempus Team"

# Version information
VERSION_INFO = {
    "major": 1,
    "minor": 0,
    "patch": 0,
    "status": "stable"
}
