from rendering.models import RenderableDocument, SandboxPolicy, DisplayHandle
from rendering.rewriter import DocumentRewriter, RewriteError, build_instrumentation_script
from rendering.surface import Blob, BlobStore, RenderSurface, blob_store, embed_markup
