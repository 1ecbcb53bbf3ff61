"""
svcbuilder package

Service scaffolding CLI: generates service projects from templates and ships
releases of already generated services.

Key responsibilities are split across modules:
- `renderer.py`: template copying and `%TAG` substitution
- `templates.py`: template lookup (path, git url or registry name)
- `licenses.py`: license text and source header resolution
- `github_client.py` / `travis.py`: isolated GitHub and Travis CI API interactions
- `node.py`: Node.js release catalog and CI node tags
- `service_create.py` / `update_version.py`: command orchestration
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
