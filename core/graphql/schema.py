import strawberry
from apps.kpis.graphql.queries import KPIQueries
from apps.kpis.graphql.mutations import KPIMutations

@strawberry.type
class Query(KPIQueries):
    pass

@strawberry.type
class Mutation(KPIMutations):
    pass

schema = strawberry.Schema(query=Query, mutation=Mutation)
