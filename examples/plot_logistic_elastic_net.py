"""
Logistic regression with elastic-net regularization
===================================================

Speed of convergence of projected gradient (PG), accelerated projected
gradient with restart (APG-RS) and the Newton Frank-Wolfe method (FWPN) on
the w8a dataset, with a logistic loss (:class:`fwpn.loss.LogLoss`), a
ridge penalty of 1 / n_samples and a L1 ball constraint.
"""
import matplotlib.pyplot as plt
import numpy as np
import fwpn

# .. problem and solver parameters ..
subset = "test"
radius = 10.0
max_iter = 10000
tol = 1e-6
verbose = 1
fwpn_options = {
    "lambda0": 1.0,
    "lambda_tol": 1e-6,
    "sub_tol": 0.1,
    "short2long": 10,
    "max_iter": 100,
    "k": 2,
}

X, y = fwpn.datasets.load_w8a(subset=subset)
n_samples, n_features = X.shape
print("Running on w8a (%s): n = %s, p = %s" % (subset, n_samples, n_features))

results = fwpn.benchmark.run_benchmark(
    X,
    y,
    radius=radius,
    max_iter=max_iter,
    tol=tol,
    fwpn_options=fwpn_options,
    verbose=verbose,
)

f_star, _ = fwpn.benchmark.suboptimality(results)
for name, res in results.items():
    print(
        "%s: f = %.10e, time = %.2fs, sparsity of solution: %s"
        % (name, res.result.fun, res.trace.trace_time[-1], np.mean(np.abs(res.x) > 1e-8))
    )
print("f* = %.10e" % f_star)

# .. plot the result ..
fname = "w8a.t" if subset == "test" else "w8a"
plt.figure()
fwpn.benchmark.plot_benchmark(
    results,
    title="%s: $n$ = %s $p$ = %s" % (fname, n_samples, n_features),
    ax=plt.gca(),
)
plt.tight_layout()
plt.show()
