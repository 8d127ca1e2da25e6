"""Derived marketplace state from on-chain auction, storefront and escrow events."""
