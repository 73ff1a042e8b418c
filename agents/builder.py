"""Build service — byte-compiles generated programs in the sandbox. Zero LLM calls."""

import logging
import os
import threading

from config.defaults import DEFAULTS
from config.stacks import get_kind
from core.sandbox import run_in_sandbox
from core.state import BuildResult
from utils.folder_naming import get_build_dir

logger = logging.getLogger(__name__)


class PythonBuildService:
    """submit(source, kind, on_complete) builds on a worker thread.

    on_complete receives a BuildResult whose artifact is the path of the
    written entry file when the build succeeded.
    """

    name = "builder"

    def __init__(self, config=None):
        self.config = config or DEFAULTS

    def build(self, source, artifact_kind="gui"):
        kind = get_kind(artifact_kind)
        work_dir = get_build_dir(self.config.get("build_root") or None)
        entry = kind["entry_file"]
        path = os.path.join(work_dir, entry)
        with open(path, "w") as fp:
            fp.write(source or "")

        try:
            outcome = run_in_sandbox(
                kind["build_command"] + [entry],
                cwd=work_dir,
                timeout=self.config["sandbox_timeout"],
                allowed_commands=self.config["allowed_commands"],
            )
        except ValueError as e:
            logger.error("Build command rejected: %s", e)
            return BuildResult(success=False, diagnostics=str(e))

        if outcome.returncode != 0:
            diagnostics = (
                outcome.stderr or outcome.stdout
                or f"Build failed with exit code {outcome.returncode}"
            ).strip()
            if outcome.timed_out:
                logger.warning("Build timed out in %s", work_dir)
            else:
                logger.info("Build failed in %s", work_dir)
            return BuildResult(success=False, diagnostics=diagnostics)

        logger.info("Build succeeded: %s", path)
        return BuildResult(success=True, artifact=path)

    def submit(self, source, artifact_kind, on_complete):
        def worker():
            try:
                result = self.build(source, artifact_kind)
            except Exception as e:
                logger.exception("Build crashed")
                result = BuildResult(success=False, diagnostics=f"Build crashed: {e}")
            on_complete(result)

        thread = threading.Thread(target=worker, name="forgeloop-build", daemon=True)
        thread.start()
        return thread
