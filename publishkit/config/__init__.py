"""Load and validate the YAML configuration of a website build.

This subpackage parses a ``site.yaml`` file describing the website (name, URL,
section ids) and the folders used to build it, applies defaults and produces
the typed dataclasses (:class:`Website`, :class:`SiteConfig`) that the CLI and
the step library consume. The primary entry point is
:func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from publishkit.config import load_site_config
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> config.site.name  # doctest: +SKIP
'Example'
"""

from .loader import load_site_config
from .models import GitDeployConfig, SiteConfig, SiteConfigError, Website

__all__ = [
    "GitDeployConfig",
    "SiteConfig",
    "SiteConfigError",
    "Website",
    "load_site_config",
]
