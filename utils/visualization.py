"""
Visualization utilities for the microarray benchmark results.
Includes the printed accuracy table, the accuracy boxplot and its interactive version.
"""

import logging
from typing import Tuple

import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
import plotly.graph_objects as go

from .evaluation import AVERAGE_ROW

# Configure matplotlib style
plt.style.use('seaborn-v0_8-darkgrid')
sns.set_palette("husl")

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def print_accuracy_table(table: pd.DataFrame) -> str:
    """Print the accuracy table transposed (models as rows) and return the text."""
    text = table.T.to_string(float_format=lambda v: f"{v:.2f}")
    print(text)
    return text


def _per_dataset_long(table: pd.DataFrame) -> pd.DataFrame:
    """Long format (dataset, model, accuracy) without the average row."""
    per_dataset = table.drop(index=AVERAGE_ROW, errors='ignore')
    long_df = per_dataset.reset_index().melt(id_vars=per_dataset.index.name or 'index',
                                              var_name='model', value_name='accuracy')
    return long_df.rename(columns={per_dataset.index.name or 'index': 'dataset'})


class MicroarrayVisualizer:
    """
    Plots of the per-dataset accuracy distributions of the benchmark models.
    """

    def __init__(self, figsize: Tuple = (12, 6), dpi: int = 100):
        """
        Initialize visualizer.

        Parameters:
        -----------
        figsize : Tuple
            Default figure size
        dpi : int
            Figure resolution
        """
        self.figsize = figsize
        self.dpi = dpi

    def plot_accuracy_boxplot(self, table: pd.DataFrame, save_path: str = None) -> plt.Figure:
        """
        Box-and-whisker plot of per-dataset accuracies for each model.

        Parameters:
        -----------
        table : pd.DataFrame
            Accuracy table (datasets x models, percentages); the average row
            is excluded, models keep the table's column order
        save_path : str, optional
            Path to save figure

        Returns:
        --------
        fig : matplotlib.figure.Figure
            Generated figure
        """
        long_df = _per_dataset_long(table)
        models = list(table.columns)

        fig, ax = plt.subplots(figsize=self.figsize)
        sns.boxplot(data=long_df, x='model', y='accuracy', order=models, hue='model',
                    hue_order=models, legend=False,
                    palette=sns.color_palette("husl", len(models)), ax=ax)
        sns.stripplot(data=long_df, x='model', y='accuracy', order=models,
                      color='black', size=3, alpha=0.6, ax=ax)

        ax.set_xlabel('Model')
        ax.set_ylabel('Accuracy (%)')
        ax.set_title(f'Test accuracy across {long_df["dataset"].nunique()} datasets')
        ax.tick_params(axis='x', rotation=45)
        ax.grid(True, alpha=0.3, axis='y')

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=self.dpi, bbox_inches='tight')
            logger.info(f"Figure saved to {save_path}")

        return fig

    def create_interactive_boxplot(self, table: pd.DataFrame, save_path: str = None) -> go.Figure:
        """
        Interactive version of the accuracy boxplot using Plotly.

        Parameters:
        -----------
        table : pd.DataFrame
            Accuracy table (datasets x models, percentages)
        save_path : str, optional
            Path to save HTML file
        """
        per_dataset = table.drop(index=AVERAGE_ROW, errors='ignore')

        fig = go.Figure()
        for model in table.columns:
            fig.add_trace(
                go.Box(y=per_dataset[model].values, name=model,
                       text=list(per_dataset.index), boxpoints='all',
                       hovertemplate='%{text}: %{y:.2f}%<extra></extra>')
            )

        fig.update_layout(
            height=600,
            title_text="Test accuracy per model across datasets",
            showlegend=False,
            template='plotly_white'
        )
        fig.update_xaxes(title_text="Model")
        fig.update_yaxes(title_text="Accuracy (%)")

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Interactive boxplot saved to {save_path}")

        return fig


def accuracy_ranks(table: pd.DataFrame) -> pd.Series:
    """Mean rank of every model across datasets (1 = best), ties averaged."""
    per_dataset = table.drop(index=AVERAGE_ROW, errors='ignore')
    ranks = per_dataset.rank(axis=1, ascending=False, method='average')
    return ranks.mean(axis=0).sort_values(kind='mergesort')
