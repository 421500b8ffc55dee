"""Smoke tests for plot_spline_fit."""

import numpy as np
import pytest
import matplotlib
matplotlib.use('Agg')

import splinede as sd


class TestPlotSplineFit:

    def test_plot_all_donors(self, annotated, fit):
        import matplotlib.pyplot as plt
        gene = annotated.gene_names[0]
        fig, ax = sd.plot_spline_fit(annotated, fit, gene, n_points=30)
        assert fig is not None
        assert ax.get_title() == gene
        # one curve per donor
        assert len(ax.get_lines()) == 2
        assert len(ax.get_lines()[0].get_xdata()) == 30
        # one scatter per donor
        assert len(ax.collections) == 2
        plt.close(fig)

    def test_curve_in_log2(self, annotated, fit):
        import matplotlib.pyplot as plt
        gene = annotated.gene_names[0]
        fig, ax = sd.plot_spline_fit(annotated, fit, gene, groups=['1741_006'], n_points=10)
        curve = sd.fitted_curve(fit, gene, '1741_006', n_points=10)
        assert np.allclose(ax.get_lines()[0].get_ydata(), curve['fitted'].values / np.log(2))
        plt.close(fig)

    def test_existing_axes(self, annotated, fit):
        import matplotlib.pyplot as plt
        fig, ax = plt.subplots()
        fig2, ax2 = sd.plot_spline_fit(annotated, fit, annotated.gene_names[1], ax=ax, main='top hit')
        assert ax2 is ax and fig2 is fig
        assert ax.get_title() == 'top hit'
        plt.close(fig)

    def test_unknown_gene(self, annotated, fit):
        with pytest.raises(ValueError, match="not found"):
            sd.plot_spline_fit(annotated, fit, 'nope')
