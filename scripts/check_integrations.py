"""Run connectivity checks against the image provider."""

from __future__ import annotations

import asyncio
from typing import Iterable

from nebula.config.settings import get_settings
from nebula.integrations import IntegrationCheckResult, check_provider
from nebula.secrets.keychain import CredentialStore, resolve_credential


def _format_result(result: IntegrationCheckResult) -> str:
    status = "✅" if result.success else "❌"
    return f"{status} {result.name}: {result.message}"


def print_results(results: Iterable[IntegrationCheckResult]) -> None:
    for result in results:
        print(_format_result(result))


def main() -> None:
    settings = get_settings()
    credential = resolve_credential(CredentialStore(settings.keyring_service), settings)
    results = [asyncio.run(check_provider(credential, settings))]
    print_results(results)


if __name__ == "__main__":
    main()
