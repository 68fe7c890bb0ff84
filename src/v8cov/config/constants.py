"""Configuration constants.

This module contains values fixed by the host runtimes rather than by users.
For configurable values, see models.py (ConversionConfig, LoggingConfig).
"""

# =============================================================================
# Node.js CommonJS module wrapper
# =============================================================================
# Node executes every CommonJS module as the body of this function. The profiler
# reports offsets into the wrapped text, not into the file on disk.

NODE_CJS_WRAPPER_PROLOGUE = "(function (exports, require, module, __filename, __dirname) { "
"""Text Node prepends to a CommonJS module (``Module.wrapper[0]``)."""

NODE_CJS_WRAPPER_EPILOGUE = "\n});"
"""Text Node appends to a CommonJS module (``Module.wrapper[1]``)."""

# =============================================================================
# Script URLs
# =============================================================================

FILE_URL_PREFIX = "file://"
"""Scheme prefix the engine uses for ECMAScript module URLs."""

INTERNAL_URL_PREFIXES = ("node:", "internal/", "evalmachine.")
"""URL prefixes of engine-internal scripts that have no source file on disk."""
