"""Quote pricing, numbering, assembly and PDF rendering."""
