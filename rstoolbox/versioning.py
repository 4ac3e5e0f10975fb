# -*- coding: utf-8 -*-
"""
Processor Versioning - Version decorator for processing classes.

Provides the ``@processor_version`` class decorator for stamping semantic
version strings on co-registration and other processing classes. The
version is the single source of truth for both the algorithm version and
the layout of the results the class produces.

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

# Standard library
from typing import Optional, Type, TypeVar, overload
import importlib.metadata

T = TypeVar('T')


@overload
def processor_version(version: str):
    ...

@overload
def processor_version():
    ...

def processor_version(version: Optional[str] = None):
    """Class decorator that stamps a processor version on a class.

    Sets ``__processor_version__`` as a class attribute. If a version is
    not provided, it is inferred from the installed ``rstoolbox``
    distribution, falling back to ``'unknown'`` for source checkouts.

    Parameters
    ----------
    version : str, optional
        Semantic version string (e.g., ``'1.0.0'``).

    Returns
    -------
    Callable
        Class decorator that sets ``__processor_version__`` on the class.

    Examples
    --------
    >>> @processor_version('1.0.0')
    ... class MyRegistration:
    ...     pass
    >>> MyRegistration.__processor_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__processor_version__ = version
        else:
            try:
                cls.__processor_version__ = importlib.metadata.version(
                    'rstoolbox'
                )
            except importlib.metadata.PackageNotFoundError:
                cls.__processor_version__ = "unknown"
        return cls
    return decorator
