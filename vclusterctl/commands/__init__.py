from . import serve, vcluster

__all__ = ['serve', 'vcluster']
