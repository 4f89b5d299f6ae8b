"""chartforge: build helm charts and publish them to an HTTP chart repository.

Publishing merges the freshly built local ``index.yaml`` into the
repository's index, refuses to overwrite a published version with
different content, uploads the new archives and finally the merged index.
"""

__version__ = "0.1.0"
__description__ = "Build helm charts and publish them to an HTTP chart repository"

from chartforge.core.index import IndexDocument
from chartforge.core.publisher import PublishWorkflow
from chartforge.cli.app import app as cli

__all__ = ["IndexDocument", "PublishWorkflow", "cli", "__version__"]
