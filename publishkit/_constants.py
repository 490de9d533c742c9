"""Common literal values used across publishkit.

These constants keep folder names, file names and CLI flags centralized so the
pipeline, the publishing context and the tests agree on the on-disk layout.
Intended for internal use within the publishkit package.

Examples
--------
>>> from publishkit import _constants
>>> _constants.DEPLOY_FOLDER_TEMPLATE.format(prefix="git")
'gitDeploy'
>>> "--deploy" in _constants.DEPLOYMENT_FLAGS
True
"""

OUTPUT_FOLDER_NAME = "Output"
INTERNAL_FOLDER_NAME = ".publish"
CACHES_FOLDER_NAME = "Caches"
LAST_GENERATION_FILE_NAME = "lastGenerationDate"
DEPLOY_FOLDER_TEMPLATE = "{prefix}Deploy"
DEPLOYMENT_FLAGS = frozenset({"--deploy", "-d"})
PROJECT_MARKERS = ("pyproject.toml", "setup.cfg", "setup.py")
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"
