"""Request values, tagged results and batch envelopes."""
