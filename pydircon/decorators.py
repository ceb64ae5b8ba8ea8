"""
Function decorators for timing solves and handling matplotlib figures

October 19, 2026
"""
import time
import functools
from matplotlib import pyplot as plt

def timer(func):
    """Print the runtime of the decorated function. The runtime of the most recent call is kept in the total_time attribute"""
    @functools.wraps(func)
    def wrapper_timer(*args, **kwargs):
        start = time.perf_counter()
        value = func(*args, **kwargs)
        wrapper_timer.total_time = time.perf_counter() - start
        print(f"Finished {func.__qualname__!r} in {wrapper_timer.total_time:.4f} seconds")
        return value
    wrapper_timer.total_time = 0.
    return wrapper_timer

def saveable_fig(func):
    """Save the figure returned by func to the file given by the savename keyword"""
    @functools.wraps(func)
    def wrapper_saveable_fig(*args, savename=None, **kwargs):
        kwargs.pop('show', None)
        fig, axs = func(*args, **kwargs)
        if savename is not None:
            fig.savefig(savename, dpi=fig.dpi, bbox_inches='tight')
        return fig, axs
    return wrapper_saveable_fig

def showable_fig(func):
    """Show the figure returned by func when the show keyword is True"""
    @functools.wraps(func)
    def wrapper_showable_fig(*args, show=False, **kwargs):
        fig, axs = func(*args, **kwargs)
        if show:
            plt.show(block=True)
        return fig, axs
    return wrapper_showable_fig
