"""Engine that runs the ``qpdf`` command-line tool in job JSON mode."""

from __future__ import annotations

import os
import subprocess
import tempfile
from typing import Any, Mapping

from ..encoder import to_json
from ..enums import ExitCode, IsEncryptedExitCode, RequiresPasswordExitCode
from ..exceptions import EngineUnavailableError
from ..utils import get_logger, run_subprocess, which
from .base import EngineResult, ExitCodeTable, combine_output

logger = get_logger("pdfjobx.engines.qpdf")

QPDF_EXECUTABLES = ("qpdf",)

QPDF_EXIT_CODES = ExitCodeTable(
    generic={
        0: ExitCode.SUCCESS,
        2: ExitCode.ERRORS_FOUND_FILE_NOT_PROCESSED,
        3: ExitCode.WARNINGS_FOUND_FILE_PROCESSED,
    },
    is_encrypted={
        0: IsEncryptedExitCode.ENCRYPTED,
        2: IsEncryptedExitCode.NOT_ENCRYPTED,
    },
    requires_password={
        0: RequiresPasswordExitCode.PASSWORD_REQUIRED,
        2: RequiresPasswordExitCode.NOT_ENCRYPTED,
        3: RequiresPasswordExitCode.ENCRYPTED_NO_PASSWORD_REQUIRED,
    },
)


def wants_payload(document: Mapping[str, Any]) -> bool:
    """Return True when stdout carries requested data rather than diagnostics."""

    if "showAttachment" in document or document.get("outputFile") == "-":
        return True
    if "showObject" in document and ("rawStreamData" in document or "filteredStreamData" in document):
        return True
    return "json" in document and "jsonOutput" not in document and "outputFile" not in document


class QpdfEngine:
    """
    Run wire documents through ``qpdf --job-json-file``.

    Args:
        executable: Path to the qpdf binary; looked up on ``PATH`` when omitted
        timeout: Seconds before the subprocess is abandoned
    """

    name = "qpdf"
    exit_codes = QPDF_EXIT_CODES

    def __init__(self, executable: str | None = None, *, timeout: float | None = None) -> None:
        self.executable = executable or which(QPDF_EXECUTABLES)
        self.timeout = timeout

    @classmethod
    def available(cls) -> bool:
        return which(QPDF_EXECUTABLES) is not None

    def execute(self, document: Mapping[str, Any]) -> EngineResult:
        if not self.executable:
            raise EngineUnavailableError("qpdf executable not found on PATH")

        handle, job_file = tempfile.mkstemp(prefix="pdfjobx-", suffix=".json")
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(to_json(document))
            command = [self.executable, f"--job-json-file={job_file}"]
            logger.info("Running qpdf job with %d option(s)", len(document))
            try:
                completed = run_subprocess(command, timeout=self.timeout)
            except FileNotFoundError as exc:
                raise EngineUnavailableError(f"qpdf could not be started: {exc}") from exc
            except subprocess.TimeoutExpired as exc:
                raise EngineUnavailableError(
                    f"qpdf did not finish within {self.timeout} seconds"
                ) from exc
        finally:
            os.unlink(job_file)

        stdout = completed.stdout or b""
        stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
        if wants_payload(document):
            data: bytes | None = stdout
            info = ""
        else:
            data = None
            info = stdout.decode("utf-8", errors="replace")

        logger.debug("qpdf exited with status %s", completed.returncode)
        # qpdf writes warnings and errors to stderr in emission order
        return EngineResult(
            exit_code=completed.returncode,
            output=combine_output(info, stderr),
            data=data,
        )


__all__ = ["QpdfEngine", "QPDF_EXIT_CODES", "wants_payload"]
