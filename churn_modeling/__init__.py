"""Telco customer churn: cleaning, rebalancing, feature selection and model comparison."""
