"""Cart ledger and checkout sequencing."""
