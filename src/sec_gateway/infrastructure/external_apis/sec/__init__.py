# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""SEC external API package.

Purpose:
    Group SEC-related infrastructure modules:

    * settings: Pydantic settings for the SEC client.
    * client: Async HTTP client for SEC EDGAR resources.
"""

from __future__ import annotations
