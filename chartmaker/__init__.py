"""Chart Maker: build cover grids from Bangumi and VNDB."""
