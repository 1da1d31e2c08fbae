"""Django project package for paystackCharts."""
