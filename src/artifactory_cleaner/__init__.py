"""
Artifactory Cleaner - retention policies for an Artifactory instance.

Removes superseded Maven snapshots, surplus Docker tags and old
releases through Artifactory's REST API, retrying every remote call.
"""

__version__ = "0.1.0"

__all__ = []
