#!/usr/bin/env python3
import sys

import requests

def get_item_forecast(item_name, base_url="http://localhost:8000"):
    """
    Get the ensemble forecast bundle for a menu item

    Args:
        item_name (str): The menu item (e.g., 'Grilled Chicken')
        base_url (str): Where the forecasting API is running

    Returns:
        dict: The forecast bundle, or None if the request failed
    """
    url = f"{base_url}/forecasting/ensemble/{requests.utils.quote(item_name)}"

    try:
        response = requests.get(url, timeout=30)
        response.raise_for_status()  # Raise exception for error status codes
        return response.json()
    except requests.exceptions.RequestException as e:
        print(f"Error fetching forecast: {e}")
        return None

def format_forecast_as_string(bundle):
    """
    Format the ensemble forecast as a readable table

    Args:
        bundle (dict): The forecast bundle returned by the API

    Returns:
        str: Formatted string representation of the forecast
    """
    if not bundle:
        return "No forecast data available"

    result = [f"Demand Forecast for {bundle['item_name']} ({bundle['category']})"]
    result.append("=" * 50)
    best = bundle['best_model']
    if best.get('metrics'):
        result.append(f"Best model: {best['name']} (accuracy {best['metrics']['accuracy']:.2f})")
    else:
        result.append(f"Best model: {best['name']}")
    result.append("-" * 50)
    result.append(f"{'Step':<6} | {'Predicted Qty':>15} | {'Confidence':>12}")
    result.append("-" * 50)

    for step, (predicted, confidence) in enumerate(
        zip(bundle['ensemble_prediction'], bundle['ensemble_confidence']), start=1
    ):
        result.append(f"{step:<6} | {predicted:>15.2f} | {confidence:>12.2f}")

    if bundle.get('anomalies'):
        result.append("-" * 50)
        result.append("Unusual days:")
        for anomaly in bundle['anomalies']:
            result.append(f"  {anomaly['date'][:10]}  qty {anomaly['value']:g}  (z={anomaly['anomaly_score']:.2f})")

    return "\n".join(result)

def main():
    item_name = sys.argv[1] if len(sys.argv) > 1 else "Grilled Chicken"

    print(f"Fetching ensemble forecast for {item_name}...")

    bundle = get_item_forecast(item_name)

    if bundle:
        print(format_forecast_as_string(bundle))
    else:
        print("Failed to retrieve forecast data")

if __name__ == "__main__":
    main()
