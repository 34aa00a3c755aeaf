"""SafeVault custodial wallet API."""
