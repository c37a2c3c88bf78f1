"""XLIFF label catalogues, locales and translation."""
