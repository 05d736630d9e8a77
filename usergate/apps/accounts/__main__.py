"""Entry point for running the accounts service via `python -m usergate.apps.accounts`."""

from usergate.apps.accounts import AccountsService
from usergate.apps.accounts.core import get_accounts_config


def main():
    url = get_accounts_config().ACCOUNTS.URL

    print(f"Starting accounts service at {url}...")
    print("Press Ctrl+C to stop.")

    AccountsService.launch(url=url)


if __name__ == "__main__":
    main()
