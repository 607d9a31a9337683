"""
data_retainer
=============

Persistence collaborator: one `TradeRecord` per closed position in
*collect* mode – the entry signals joined with the trade outcome –
appended to Redis or to a CSV file. These rows are the training data
of the prediction service.

      Redis   collect:trade_data                 LIST  JSON
      CSV     history/trades/trade_data.csv      append-only
"""
