"""Load and validate render configuration for codeless_ui.

This subpackage parses ``codeless.yaml`` style files, merges their
``defaults`` section over the built-in defaults, and produces immutable
dataclasses (:class:`RenderConfig`, :class:`RepeatSpec`) that the compiler,
populator and renderer consume. The primary entry points are
:func:`load_render_config` and :func:`load_render_job`.

Examples
--------
>>> from codeless_ui.config import RepeatSpec
>>> RepeatSpec.parse("mirror justify").wrap
'mirror'
"""

from .loader import load_data_stack, load_render_config, load_render_job
from .models import DEFAULT_REPEAT, RenderConfig, RenderJob, RepeatSpec

__all__ = [
    "DEFAULT_REPEAT",
    "RenderConfig",
    "RenderJob",
    "RepeatSpec",
    "load_data_stack",
    "load_render_config",
    "load_render_job",
]
