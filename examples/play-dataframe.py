from tidyground.dataframe import Dataframe

df = Dataframe.open_csv("data/budget.csv") \
  .melt(["Name"], "FY", "Dollars") \
  .join(Dataframe.open_csv("data/agencies.csv"), "Name", how="inner") \
  .cast(["Name", "Department"], "FY", "Dollars", column_order="sorted") \
  .collect()

print(df)
