"""
Configuration constants shared by the rewriter, parser, printer and runtime
"""

import os
import tempfile

# Generated identifiers (user declarations may not use these)
TEMP_NAME_PREFIX = "_tco_temp_"
LOOP_LABEL = "_tailCall_"

# Language constants
UNDEFINED_NAME = "undefined"
STRICT_DIRECTIVE = "use strict"
VAR_KIND = "var"

# Parser configuration (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "tailcallopt_parser.cache")
DEFAULT_SOURCE_FILE = "<input>"

# Printer configuration
DEFAULT_INDENT = "    "

# Runtime configuration
DEFAULT_MAX_CALL_DEPTH = 200  # JavaScript call frames before StackOverflowError
PYTHON_FRAMES_PER_CALL = 60  # headroom reserved per JavaScript call when raising the recursion limit

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"
