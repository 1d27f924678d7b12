"""Turn pipeline: occasion classification and staged replies."""
