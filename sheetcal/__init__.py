"""
sheetcal: publish a Google Sheets events table as an iCalendar feed.
"""
