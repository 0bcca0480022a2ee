import os
from pathlib import Path
import numpy as np
import matplotlib.pyplot as plt


def plot_trace(trace: dict, path=None, show=False, title='L-BFGS convergence'):
    """
    Two panels: objective value and gradient norm per iteration (log scale).
    Saved as pdf when `path` is given, shown on screen when `show` is True.
    """
    f = np.asarray(trace.get('f', []), dtype=float)
    g_norm = np.asarray(trace.get('g_norm', []), dtype=float)
    iters = np.arange(1, len(f) + 1)

    fig, ax = plt.subplots(1, 2, figsize=(12.8, 4.8))
    fig.suptitle(title)

    ax[0].plot(iters, f, linewidth=1)
    ax[0].set(xlabel='iteration', ylabel=r'$f(x_k)$')
    ax[1].plot(iters, g_norm, linewidth=1, color='tab:red')
    ax[1].set(xlabel='iteration', ylabel=r'$\|\nabla f(x_k)\|$')
    if len(g_norm) and np.all(g_norm > 0): ax[1].set_yscale('log')
    for a in ax:
        a.grid(True, color='silver', linestyle='--', linewidth=0.5)
    fig.tight_layout()

    if path is not None:
        path = Path(path)
        if os.path.isfile(path): os.remove(path)
        fig.savefig(path, format='pdf', dpi=600)
    if show:
        plt.show()
    plt.close(fig)
    return path
