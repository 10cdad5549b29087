from .coherence import cross_spectral_coherence, coherence_window_params
