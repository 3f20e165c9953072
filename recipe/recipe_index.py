# File: recipe/recipe_index.py
"""
Recipe (bill-of-materials) index for sellable items.

• Builds one graph per ledger snapshot: sellable item ──qty_per──▶ purchasable item
• Duplicate ingredient lines inside a recipe are SUMMED into one edge
• Zero-quantity lines are dropped; every other numeric quantity counts
• Only the first recipe found for a sellable item counts (one recipe per item)
• Explodes sale lines into raw-ingredient consumption:
      purchase_item_id | consumed
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

import networkx as nx
import pandas as pd

from ledger.ledger_data import recipe_ingredients

logger = logging.getLogger(__name__)

SELLABLE = "sellable"
PURCHASE = "purchase"
EDGE_COLUMNS = ["sellable_item_id", "purchase_item_id", "qty_per"]


class RecipeIndex:
    def __init__(self, ingredients: pd.DataFrame):
        """
        Args:
            ingredients (pd.DataFrame): 'recipe_order', 'sellable_item_id',
                'purchase_item_id', 'quantity' columns (see ledger_data.recipe_ingredients).
        """
        required = {"recipe_order", "sellable_item_id", "purchase_item_id", "quantity"}
        if not required.issubset(ingredients.columns):
            raise ValueError(f"Ingredient data must contain columns: {required}")

        self._edges = self._build_edges(ingredients)
        self.graph = self._build_graph(self._edges)

    # ── 1. Deduped edge list ─────────────────────────────────────────────
    @staticmethod
    def _build_edges(ingredients: pd.DataFrame) -> pd.DataFrame:
        df = ingredients.dropna(subset=["sellable_item_id", "purchase_item_id"])
        if df.empty:
            return pd.DataFrame(columns=EDGE_COLUMNS)

        # First recipe per sellable item wins
        first_recipe = df.groupby("sellable_item_id")["recipe_order"].transform("min")
        shadowed = df["recipe_order"] != first_recipe
        if shadowed.any():
            logger.debug("Ignoring %d ingredient line(s) from duplicate recipes", int(shadowed.sum()))
        df = df[~shadowed]

        # Zero or unparseable quantities consume nothing
        qty = pd.to_numeric(df["quantity"], errors="coerce").fillna(0.0)
        df = df.assign(quantity=qty)[qty != 0]

        return (
            df.groupby(["sellable_item_id", "purchase_item_id"], as_index=False, sort=False)
              .quantity.sum()
              .rename(columns={"quantity": "qty_per"})
        )

    # ── 2. Graph build ───────────────────────────────────────────────────
    @staticmethod
    def _build_graph(edges: pd.DataFrame) -> nx.DiGraph:
        g = nx.DiGraph()
        for row in edges.itertuples(index=False):
            g.add_edge((SELLABLE, row.sellable_item_id), (PURCHASE, row.purchase_item_id),
                       qty_per=float(row.qty_per))
        logger.debug("Recipe graph: %d nodes, %d edges.", g.number_of_nodes(), g.number_of_edges())
        return g

    # ── 3. Look-ups ──────────────────────────────────────────────────────
    def edges(self) -> pd.DataFrame:
        """Return a copy of the deduped (sellable, purchasable, qty_per) edge list."""
        return self._edges.copy()

    def consumption_per_unit(self, sellable_item_id) -> Dict[str, float]:
        """Raw-ingredient quantities consumed by selling one unit of ``sellable_item_id``."""
        node = (SELLABLE, sellable_item_id)
        if node not in self.graph:
            return {}
        return {child[1]: data["qty_per"] for _, child, data in self.graph.out_edges(node, data=True)}

    def consumers_of(self, purchase_item_id) -> List:
        """Sellable items whose recipe uses ``purchase_item_id``."""
        node = (PURCHASE, purchase_item_id)
        if node not in self.graph:
            return []
        return [parent[1] for parent in self.graph.predecessors(node)]

    # ── 4. Explosion ─────────────────────────────────────────────────────
    def explode_sales(self, sale_lines: pd.DataFrame) -> pd.DataFrame:
        """
        Explode sale lines through the recipes into raw-ingredient consumption.

        Sale lines for sellable items without a recipe contribute nothing.

        Returns:
            pd.DataFrame: purchase_item_id | consumed
        """
        if sale_lines.empty or self._edges.empty:
            return pd.DataFrame({"purchase_item_id": pd.Series(dtype="object"),
                                 "consumed": pd.Series(dtype="float")})

        merged = sale_lines[["sellable_item_id", "quantity"]].merge(
            self._edges, on="sellable_item_id", how="inner"
        )
        merged["consumed"] = merged["qty_per"] * merged["quantity"]
        return merged.groupby("purchase_item_id", as_index=False, sort=False)["consumed"].sum()


def build_recipe_index(ledger: Mapping | None) -> RecipeIndex:
    """Build a RecipeIndex straight from a ledger snapshot."""
    return RecipeIndex(recipe_ingredients(ledger))
