"""
Command line entry points. Each module in this package provides a ``main``
function registered as a console script in ``setup.py``.
"""
