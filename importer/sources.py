from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shapely.geometry.base import BaseGeometry


class SourceFormat(str, Enum):
    PLAIN = "plain"
    ZIP = "zip"
    GZIP = "gzip"
    KML = "kml"

    @classmethod
    def from_url(cls, url: str) -> "SourceFormat":
        """
        Guess the format from the URL string.

        Zip detection is a substring test because some hosts serve archives
        as ``file.zip?dl=0``.
        """
        if ".zip" in url:
            return cls.ZIP
        if url.endswith(".gz"):
            return cls.GZIP
        if url.endswith(".kml"):
            return cls.KML
        return cls.PLAIN


@dataclass(frozen=True)
class SourceDescriptor:
    url: str
    format: SourceFormat
    bounds: Optional[BaseGeometry] = None
    require_all_pts_in_bounds: bool = False

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        bounds: Optional[BaseGeometry] = None,
        require_all_pts_in_bounds: bool = False,
    ) -> "SourceDescriptor":
        return cls(
            url=url,
            format=SourceFormat.from_url(url),
            bounds=bounds,
            require_all_pts_in_bounds=require_all_pts_in_bounds,
        )
