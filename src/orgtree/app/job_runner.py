from concurrent.futures import Future, ThreadPoolExecutor


class JobRunner:
    """Background work for report prefetch. One per run; shut down when the walk ends."""
    def __init__(self, max_workers: int = 4):
        self.max_workers = max(1, int(max_workers))
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="orgtree")

    def submit_job(self, fn, *args, **kwargs) -> Future:
        """Run background work. Returns Future."""
        return self._executor.submit(fn, *args, **kwargs)

    def shutdown(self, *, cancel_pending: bool = False) -> None:
        self._executor.shutdown(wait=True, cancel_futures=cancel_pending)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown(cancel_pending=exc_type is not None)
