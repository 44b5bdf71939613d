"""Trade Escrow — buyer/seller trades with collateral, arbitrated by an escrow agent."""

__version__ = "0.1.0"
