"""
Release Checker — resolves "latest" to a concrete tool version.

The toolchain config may pin the expected Terraform version to "latest".
The literal word does not appear in ``terraform version`` output for an
up-to-date binary, so the expectation is resolved through the HashiCorp
checkpoint API before it is compared with the tool's output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from loguru import logger

from src.tools.mock_tool import MOCK_TERRAFORM_VERSION


LATEST = "latest"


@dataclass
class ReleaseInfo:
    """Release metadata returned by the checkpoint API."""
    product: str = ""
    current_version: str = ""
    current_release: int = 0
    current_download_url: str = ""
    project_website: str = ""


class ReleaseChecker:
    """
    Queries the HashiCorp checkpoint service for current product versions.

    In simulation mode no request is made and the mock tool's version is
    returned, so simulated runs stay consistent end to end.
    """

    CHECKPOINT_URL = "https://checkpoint-api.hashicorp.com/v1/check"

    def __init__(self, simulate: bool = False, timeout_sec: float = 10.0) -> None:
        self._simulate = simulate
        self.timeout_sec = timeout_sec
        self._cache: Dict[str, ReleaseInfo] = {}
        logger.info(f"ReleaseChecker initialized — simulate={simulate}")

    def get_release(self, product: str = "terraform") -> Optional[ReleaseInfo]:
        """Fetch release info for a product, or None if the service is unreachable."""
        if product in self._cache:
            return self._cache[product]

        if self._simulate:
            info = ReleaseInfo(product=product, current_version=MOCK_TERRAFORM_VERSION)
            logger.info(f"ReleaseChecker [MOCK]: {product} latest -> {info.current_version}")
            self._cache[product] = info
            return info

        url = f"{self.CHECKPOINT_URL}/{product}"
        try:
            response = requests.get(url, timeout=self.timeout_sec)
            response.raise_for_status()
            data: Dict[str, Any] = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"ReleaseChecker: Error fetching {product} release: {e}")
            return None

        info = ReleaseInfo(
            product=data.get("product", product),
            current_version=data.get("current_version", ""),
            current_release=data.get("current_release", 0),
            current_download_url=data.get("current_download_url", ""),
            project_website=data.get("project_website", ""),
        )
        if not info.current_version:
            logger.error(f"ReleaseChecker: No current_version for {product} in response")
            return None

        logger.info(f"ReleaseChecker: {product} latest -> {info.current_version}")
        self._cache[product] = info
        return info

    def latest_version(self, product: str = "terraform") -> Optional[str]:
        info = self.get_release(product)
        return info.current_version if info else None

    def resolve_expected(self, expected: Optional[str], product: str = "terraform") -> Optional[str]:
        """
        Turn a configured expectation into a substring to look for.

        "latest" resolves to the current release; anything else is returned as-is.
        Returns None when "latest" cannot be resolved.
        """
        if expected != LATEST:
            return expected
        return self.latest_version(product)
