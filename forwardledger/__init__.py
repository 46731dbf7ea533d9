"""forwardledger — bilateral forward contracts on a shared ledger with oracle attestation."""
