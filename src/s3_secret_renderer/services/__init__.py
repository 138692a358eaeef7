"""Services used while rendering."""
