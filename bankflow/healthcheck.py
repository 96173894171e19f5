import sys
import asyncio

from bankflow.banking.client import get_client
from bankflow.banking.errors import BankingError
from bankflow.config import Settings

# Healthcheck: validate the banking base URL and probe the service with a
# read-only beneficiaries listing.
#
# You can skip the remote probe by setting HEALTHCHECK_SKIP_REMOTE=1
# (useful in CI or when the bank sandbox is asleep).


async def _check_remote(config: Settings) -> bool:
    client = get_client(config)
    try:
        await client.list_beneficiaries()
        return True
    except BankingError:
        return False
    finally:
        await client.aclose()


def main(config: Settings | None = None) -> int:
    cfg = config or Settings()
    if not cfg.bank_api_base_url.strip():
        print("missing BANK_API_BASE_URL", file=sys.stderr)
        return 1

    if not cfg.healthcheck_skip_remote:
        if not asyncio.run(_check_remote(cfg)):
            print("banking service not ready", file=sys.stderr)
            return 1

    print("ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
