"""
Error boundaries.

Usage:
```python
from faultguard.boundary import BoundaryController, failure_hub

boundary = BoundaryController("profile", render_profile, sink=sink)
view = boundary.mount()          # fallback view if render_profile raised

failure_hub.install()            # unhandled task exceptions -> boundaries

view.retry()                     # user pressed "retry": remount the subtree
```
"""

from faultguard.boundary.controller import (
    BoundaryController,
    BoundaryState,
    BoundaryStatus,
    FallbackRenderer,
)
from faultguard.boundary.fallback import (
    GENERIC_MESSAGES,
    FallbackView,
    RetryAction,
    default_fallback,
)
from faultguard.boundary.hub import FailureHub, failure_hub

__all__ = [
    "BoundaryController",
    "BoundaryState",
    "BoundaryStatus",
    "FallbackRenderer",
    "FallbackView",
    "GENERIC_MESSAGES",
    "RetryAction",
    "default_fallback",
    "FailureHub",
    "failure_hub",
]
