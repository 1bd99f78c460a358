"""HTTP front end for kakeibo."""
