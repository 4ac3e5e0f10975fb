# -*- coding: utf-8 -*-
"""
rstoolbox Exception Hierarchy - Domain-specific exceptions.

Lets callers catch toolbox errors distinctly from Python built-in
exceptions. Every exception subclasses both ``RsToolboxError`` and the
closest built-in exception, so existing ``except ValueError`` handlers keep
working.

License
-------
MIT License
Copyright (c) 2026 rstoolbox contributors
See LICENSE file for full text.

Created
-------
2026-02-06

Modified
--------
2026-03-02
"""


class RsToolboxError(Exception):
    """Base exception for all rstoolbox errors."""


class ValidationError(RsToolboxError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for malformed shift inputs, out-of-range parameters,
    unknown option names, and other input validation failures.
    """


class ProjectionMismatchError(ValidationError):
    """Master and slave rasters are not in the same reference system."""


class BandCountMismatchError(ValidationError):
    """Master and slave rasters do not have the same number of bands."""


class DegenerateRangeError(RsToolboxError, ArithmeticError):
    """An image has a zero-width value range, so no bins can be built."""


class InsufficientOverlapError(RsToolboxError, RuntimeError):
    """The sampling region is empty or yields no valid samples.

    Raised when the overlap of the master with every shifted slave
    footprint is empty, or when a shift candidate leaves no valid
    master/slave sample pair.
    """


class MetadataError(RsToolboxError, ValueError):
    """Malformed or incomplete sensor metadata file."""
