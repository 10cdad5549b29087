from .granger import granger_causality, spectral_granger_causality
