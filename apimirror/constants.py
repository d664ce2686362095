from pathlib import Path

import platformdirs

from .typed_path import AbsDir, RelDir, RelFile

MIRROR_NAME: str = "apimirror"
MIRROR_FILE: RelFile = RelFile(Path("apimirror.yaml"))
MIRROR_ROOT: RelDir = RelDir(Path("mirrors"))
MIRROR_CACHE: AbsDir = AbsDir(Path(platformdirs.user_cache_dir(MIRROR_NAME)))

GO_MOD: RelFile = RelFile(Path("go.mod"))
GO_SOURCE_SUFFIX: str = ".go"
GO_TEST_SUFFIX: str = "_test.go"
DEFAULT_GO_VERSION: str = "1.22"

LOADING_SUFFIX: str = "..."
DONE_SUFFIX: str = "[done]"
FAILURE_SUFFIX: str = "[failed]"
