"""Column binning: normalization, strategies, the binning engine and the three builders."""
