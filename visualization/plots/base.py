#!/usr/bin/env python3
"""
Base plotting functionality for climate trend visualizations.

This module contains the BasePlotter class with shared configuration,
styling, and helper methods used across the specialized plotters.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import numpy as np
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Set consistent plotting style
plt.style.use('default')
sns.set_palette("husl")


class BasePlotter:
    """Base class for all specialized plotters with shared functionality."""

    def __init__(self, config: Dict[str, Any]):
        """Initialize base plotter with configuration."""
        self.config = config
        self.viz_config = config.get('visualization', {})

        # Standard color scheme for station variables
        self.colors = self.viz_config.get('colors', {
            'mean_tmax': '#d62728',
            'mean_tmin': '#1f77b4',
            'total_precip': '#2ca02c',
            'trend': '#000000'
        })

        # Figure configuration
        self.figure_size = self.viz_config.get('figure_size', [10, 6])
        self.dpi = self.viz_config.get('dpi', 150)

        # Set plotting style
        style = self.viz_config.get('style', 'seaborn-v0_8-whitegrid')
        try:
            plt.style.use(style)
        except OSError:
            logger.warning(f"Style '{style}' not available, using default")

    def _get_color(self, name: str, index: int = 0) -> str:
        """Get color for a series, with fallback to indexed colors."""
        return self.colors.get(name, f'C{index}')

    def _add_statistics_text(self, ax, lines, position=(0.02, 0.98)):
        """Add statistics text box to plot."""
        if not lines:
            return

        ax.text(position[0], position[1], '\n'.join(lines), transform=ax.transAxes,
                verticalalignment='top', bbox=dict(boxstyle='round',
                facecolor='white', alpha=0.8), fontsize=9)

    @staticmethod
    def _significance_marker(p_value: float) -> str:
        """Asterisks for conventional significance levels."""
        if p_value is None or np.isnan(p_value):
            return ''
        if p_value < 0.001:
            return '***'
        if p_value < 0.01:
            return '**'
        if p_value < 0.05:
            return '*'
        return ''

    def _save_figure(self, fig, output_path: Optional[str], plot_type: str):
        """Save figure with appropriate settings and logging."""
        if output_path:
            fig.savefig(output_path, dpi=self.dpi, bbox_inches='tight',
                        facecolor='white', edgecolor='none')
            logger.info(f"{plot_type} saved to {output_path}")
