"""HTML display of ZIP attachment contents."""

import io
import zipfile
from dataclasses import dataclass

import humanize
from jinja2 import Environment, PackageLoader, select_autoescape

from .message_ui import _, add_query

_env: Environment | None = None


def get_environment() -> Environment:
    """Jinja2 environment for the package templates (autoescaped)."""
    global _env
    if _env is None:
        _env = Environment(
            loader=PackageLoader("mailprefs", "templates"),
            autoescape=select_autoescape(["html"]),
        )
        _env.globals["_"] = _
    return _env


@dataclass
class ZipEntry:
    """One file inside a ZIP attachment."""
    name: str
    size: str
    download_url: str | None = None


def zip_entries(data: bytes, download_url: str | None = None) -> list[ZipEntry]:
    """List the files of a ZIP archive, skipping directories.

    With ``download_url`` every entry links to it with its index in the
    archive as the ``zip_attachment`` parameter.
    """
    entries = []
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        for i, info in enumerate(zf.infolist()):
            if info.is_dir():
                continue
            url = add_query(download_url, zip_attachment=str(i)) if download_url else None
            entries.append(ZipEntry(
                name=info.filename,
                size=humanize.naturalsize(info.file_size, binary=True),
                download_url=url,
            ))
    return entries


def render_zip_contents(entries: list[ZipEntry]) -> str:
    return get_environment().get_template("mime/zip.html").render(files=entries)
