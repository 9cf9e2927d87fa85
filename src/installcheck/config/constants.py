"""Harness constants.

This module contains truly constant values that should NOT be user-configurable:
report layout, file names and the harness exit statuses.

For configurable values, see models.py.
"""

# =============================================================================
# Output Layout
# =============================================================================

LOG_FILE_NAME = "installcheck.log"
"""Cumulative human-readable run log inside the output directory."""

REPORT_FILE_TEMPLATE = "TEST-{name}.xml"
"""One JUnit document per phase."""

DATA_SUBDIR = "output"
"""Directory (below the output directory) exported to tests for their data."""

TMP_DIR_PREFIX = "installcheck-"

OUTPUT_LINE_PREFIX = "   > "
"""Prefix for captured test output copied into the run log."""

SKIP_SENTINEL = "SKIP"
"""--source-dir value disabling the source-tree test runner."""

# =============================================================================
# JUnit Report
# =============================================================================

PLACEHOLDER = "XXX"
"""Token written for aggregate attributes until the report is closed."""

HOST_PROPERTIES = ("os.arch", "os.name", "os.version", "user.home", "user.name")

CDATA_END = "]]>"

# =============================================================================
# Harness Exit Statuses
# =============================================================================

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ABORTED = 2
