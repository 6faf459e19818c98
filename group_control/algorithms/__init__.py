from .first_fit import FirstFitStrategy

__all__ = ['FirstFitStrategy']
