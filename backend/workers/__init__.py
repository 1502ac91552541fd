from .rest_api_worker import rest_api_worker, build_runtime

__all__ = ['rest_api_worker', 'build_runtime']
