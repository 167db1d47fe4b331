from pydantic import BaseModel

class RegisterIn(BaseModel): name: str = ""; email: str; password: str
class LoginIn(BaseModel): email: str; password: str
class TradeIn(BaseModel): email: str; ticker: str; units: int

class PositionOut(BaseModel): ticker: str; units: int; avgCost: float
class ProfileOut(BaseModel): name: str; email: str; portfolio: list[PositionOut]; balance: float
class UserOut(ProfileOut): id: int
class LoginOut(BaseModel): token: str; user: ProfileOut
class MessageOut(BaseModel): message: str

def position_out(p) -> PositionOut:
    return PositionOut(ticker=p.ticker, units=p.units, avgCost=p.avg_cost)

def profile_out(u) -> ProfileOut:
    return ProfileOut(name=u.name, email=u.email, balance=u.balance,
                      portfolio=[position_out(p) for p in u.portfolio])

def user_out(u) -> UserOut:
    return UserOut(id=u.id, name=u.name, email=u.email, balance=u.balance,
                   portfolio=[position_out(p) for p in u.portfolio])
